"""
Entidades do Domínio de Tickets.

Este módulo define as entidades de domínio que representam
tickets de suporte como materializados pela projeção.

Entidades:
- Ticket: Agregado principal do domínio
- TicketUpdate: Comentário anexado ao ticket (append-only)
- TicketStatus: Estados do workflow
- LegacyTicketStatus: Vocabulário antigo (apenas leitura)
- TicketPriority: Níveis de prioridade

O Ticket NUNCA é mutado localmente pelo workflow: toda mudança
passa pelo gateway e volta na próxima snapshot da projeção.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple


class TicketStatus(str, Enum):
    """
    Estados do workflow de tickets.

    Fluxo de Estados:
        PENDING → RESOLVED → CLOSED
           │
           ├──→ REJECTED (exige motivo)
           └──→ CLOSED
    """

    PENDING = "pending"
    RESOLVED = "resolved"
    REJECTED = "rejected"
    CLOSED = "closed"

    @classmethod
    def from_string(cls, value: str) -> "TicketStatus":
        """
        Converte string para enum.

        Raises:
            ValueError: Se valor inválido
        """
        normalized = (value or "").strip().lower()
        for status in cls:
            if status.value == normalized:
                return status
        raise ValueError(f"Status inválido: {value}")

    @property
    def is_terminal(self) -> bool:
        return self in (TicketStatus.REJECTED, TicketStatus.CLOSED)


class LegacyTicketStatus(str, Enum):
    """
    Vocabulário de status antigo, ainda presente em documentos.

    Reconhecido para exibição e filtro; o workflow nunca o produz
    e nenhuma transição parte dele.
    """

    OPEN = "open"
    IN_PROGRESS = "in-progress"


class TicketPriority(str, Enum):
    """
    Níveis de prioridade.

    Severidade (usada na ordenação):
        URGENT: 0 (mais severa)
        HIGH: 1
        MEDIUM: 2
        LOW: 3
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @property
    def severity_rank(self) -> int:
        """Posição na ordenação por severidade (0 = mais severa)."""
        rank_map = {
            TicketPriority.URGENT: 0,
            TicketPriority.HIGH: 1,
            TicketPriority.MEDIUM: 2,
            TicketPriority.LOW: 3,
        }
        return rank_map[self]

    @classmethod
    def from_string(cls, value: str) -> "TicketPriority":
        """
        Converte string para enum.

        Raises:
            ValueError: Se valor inválido
        """
        normalized = (value or "").strip().lower()
        for priority in cls:
            if priority.value == normalized:
                return priority
        raise ValueError(f"Prioridade inválida: {value}")


@dataclass(frozen=True)
class TicketUpdate:
    """Comentário anexado a um ticket."""

    text: str
    created_at: Optional[datetime] = None
    created_by: str = ""


@dataclass
class Ticket:
    """
    Entidade de Domínio: Ticket.

    Status e prioridade são mantidos como strings cruas porque a
    coleção contém dois vocabulários de status e valores fora do
    enum não devem derrubar a projeção. Use workflow_status e
    priority_level para a forma tipada.

    Attributes:
        id: ID do documento
        title: Título
        description: Descrição do problema
        category: Categoria livre
        priority: Prioridade (string crua)
        status: Status (string crua)
        user_id: UID do criador
        user_email: E-mail do criador
        user_name: Nome exibido do criador
        created_at: Timestamp do servidor (None enquanto pendente)
        updated_at: Última atualização (None enquanto pendente)
        rejection_reason: Motivo da rejeição (só quando rejected)
        updates: Comentários em ordem de inserção
    """

    id: str
    title: str = ""
    description: str = ""
    category: str = ""
    priority: str = TicketPriority.MEDIUM.value
    status: str = TicketStatus.PENDING.value
    user_id: str = ""
    user_email: str = ""
    user_name: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    updates: Tuple[TicketUpdate, ...] = field(default_factory=tuple)

    @property
    def workflow_status(self) -> Optional[TicketStatus]:
        """Status tipado, ou None para vocabulário legado/desconhecido."""
        try:
            return TicketStatus.from_string(self.status)
        except ValueError:
            return None

    @property
    def priority_level(self) -> Optional[TicketPriority]:
        """Prioridade tipada, ou None se desconhecida."""
        try:
            return TicketPriority.from_string(self.priority)
        except ValueError:
            return None

    @property
    def is_rejected(self) -> bool:
        return self.workflow_status == TicketStatus.REJECTED

    @property
    def is_legacy_status(self) -> bool:
        return self.status in {s.value for s in LegacyTicketStatus}

    def __repr__(self) -> str:
        return f"Ticket(id={self.id}, status={self.status}, priority={self.priority})"
