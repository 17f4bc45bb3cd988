"""
Entidades do Domínio de Usuários.

Entidades:
- Identity: Identidade autenticada (fornecida pelo provedor de login)
- UserRole: Papéis reconhecidos
- UserProfile: Documento de perfil da coleção "users"

Um perfil sem campo "role" equivale a UserRole.USER.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class UserRole(str, Enum):
    """Papéis de usuário. Apenas ADMIN é privilegiado."""

    USER = "user"
    ADMIN = "admin"

    @classmethod
    def from_string(cls, value: Optional[str]) -> "UserRole":
        """
        Converte string para enum.

        Ausente (None/"") vira USER.

        Raises:
            ValueError: Se valor inválido
        """
        if not value:
            return cls.USER
        for role in cls:
            if role.value == value:
                return role
        raise ValueError(f"Papel inválido: {value}")


@dataclass(frozen=True)
class Identity:
    """
    Identidade autenticada.

    Attributes:
        uid: Identificador estável do usuário
        email: E-mail
        display_name: Nome exibido
        photo_url: URL do avatar
    """

    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    photo_url: Optional[str] = None

    def __post_init__(self):
        if not self.uid:
            raise ValueError("uid é obrigatório")


@dataclass
class UserProfile:
    """
    Perfil de usuário (documento "users/{uid}").

    O campo role guarda a string crua do documento; valores
    desconhecidos nunca concedem privilégio.
    """

    uid: str
    name: str = ""
    email: str = ""
    phone: str = ""
    location: str = ""
    department: str = ""
    role: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @property
    def effective_role(self) -> str:
        """Papel efetivo: ausente equivale a "user"."""
        return self.role or UserRole.USER.value
