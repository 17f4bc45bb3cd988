"""
Mapper entre documentos da coleção "users" e UserProfile.
"""

from typing import Any, Dict

from servicedesk.core.shared.interfaces import RawDocument

from .entities import Identity, UserProfile


# Campos que o próprio usuário pode editar no perfil
EDITABLE_FIELDS = ("name", "phone", "location", "department")


class UserProfileMapper:
    """Conversões de perfil (stateless)."""

    @staticmethod
    def to_entity(document: RawDocument) -> UserProfile:
        """
        Converte documento cru para UserProfile.

        Raises:
            KeyError: Se o documento não tem "id"
        """
        return UserProfile(
            uid=document["id"],
            name=document.get("name") or "",
            email=document.get("email") or "",
            phone=document.get("phone") or "",
            location=document.get("location") or "",
            department=document.get("department") or "",
            role=document.get("role") or None,
        )

    @staticmethod
    def initial_document(identity: Identity) -> Dict[str, Any]:
        """
        Documento criado no primeiro acesso ao perfil.

        Não inclui "role": ausência equivale a usuário comum.
        """
        return {
            "name": identity.display_name or "",
            "email": identity.email or "",
            "phone": "",
            "location": "",
            "department": "",
        }

    @staticmethod
    def to_document(profile: UserProfile) -> Dict[str, Any]:
        """Documento completo dos campos de perfil (sem role)."""
        return {
            "name": profile.name,
            "email": profile.email,
            "phone": profile.phone,
            "location": profile.location,
            "department": profile.department,
        }
