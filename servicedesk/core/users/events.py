"""
Domain Events do Domínio de Usuários.

Eventos:
- UserRoleChangedEvent: Papel de um usuário foi alterado
- UserDeletedEvent: Documento de perfil foi removido
"""

from dataclasses import dataclass
from typing import Optional

from servicedesk.core.shared.events import DomainEvent


@dataclass
class UserRoleChangedEvent(DomainEvent):
    """
    Evento: Papel de usuário alterado por um administrador.

    Attributes:
        new_role: Papel gravado
        changed_by: UID do administrador
    """

    new_role: str = ""
    changed_by: Optional[str] = None

    @property
    def aggregate_type(self) -> str:
        return "User"


@dataclass
class UserDeletedEvent(DomainEvent):
    """Evento: Perfil de usuário removido por um administrador."""

    deleted_by: Optional[str] = None

    @property
    def aggregate_type(self) -> str:
        return "User"
