"""
Domain Events do Domínio de Tickets.

Este módulo define os eventos de domínio disparados quando
uma escrita no ticket foi aceita pelo gateway.

Eventos:
- TicketCreatedEvent: Novo ticket foi criado
- TicketStatusChangedEvent: Status mudou (exceto rejeição)
- TicketRejectedEvent: Rejeição confirmada com motivo
- TicketCommentAddedEvent: Comentário anexado

Uso:
    with uow:
        gateway.update_document("tickets", ticket_id, patch)
        uow.publish_event(TicketRejectedEvent(aggregate_id=ticket_id, ...))
"""

from dataclasses import dataclass
from typing import Any, Dict

from servicedesk.core.shared.events import DomainEvent


@dataclass
class TicketCreatedEvent(DomainEvent):
    """
    Evento: Ticket foi criado.

    Handlers típicos:
    - Notificar equipe de suporte
    - Registrar em analytics

    Attributes:
        user_id: UID do criador
        title: Título do ticket
        priority: Prioridade
        category: Categoria
    """

    user_id: str = ""
    title: str = ""
    priority: str = ""
    category: str = ""

    @property
    def aggregate_type(self) -> str:
        return "Ticket"


@dataclass
class TicketStatusChangedEvent(DomainEvent):
    """
    Evento: Status do ticket mudou.

    Attributes:
        previous_status: Status antes da transição
        new_status: Status depois da transição
    """

    previous_status: str = ""
    new_status: str = ""

    @property
    def aggregate_type(self) -> str:
        return "Ticket"


@dataclass
class TicketRejectedEvent(DomainEvent):
    """
    Evento: Rejeição do ticket foi confirmada.

    Handlers típicos:
    - Notificar o criador com o motivo

    Attributes:
        previous_status: Status antes da rejeição
        reason: Motivo informado pelo operador
        user_email: E-mail do criador do ticket
    """

    previous_status: str = ""
    reason: str = ""
    user_email: str = ""

    @property
    def aggregate_type(self) -> str:
        return "Ticket"


@dataclass
class TicketCommentAddedEvent(DomainEvent):
    """Evento: Comentário foi anexado ao ticket."""

    text: str = ""
    created_by: str = ""

    @property
    def aggregate_type(self) -> str:
        return "Ticket"

    def payload(self) -> Dict[str, Any]:
        # Texto truncado: o evento vai para log e fila
        return {
            "text": self.text[:200],
            "created_by": self.created_by,
        }
