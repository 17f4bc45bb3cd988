"""
Domain Events do service desk.

Um evento descreve um fato já consumado sobre um documento
(ticket rejeitado, papel alterado). O UnitOfWork guarda os eventos
e só os entrega ao publisher quando a escrita no gateway deu certo;
se a escrita falha, nada é publicado.

Todo evento carrega identificador próprio, instante UTC e o ID do
documento de origem, o que permite correlacionar log e fila.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, Dict
import uuid

# Campos de envelope, fora do bloco "data" serializado
ENVELOPE_FIELDS = frozenset({"event_id", "aggregate_id", "occurred_at", "version"})


def _new_event_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class DomainEvent(ABC):
    """
    Base dos eventos de domínio.

    Subclasses declaram seus campos como dataclass e informam o tipo
    do agregado. Nomes no passado: TicketRejectedEvent, UserDeletedEvent.

    Attributes:
        event_id: Identificador do evento (hex de UUID4)
        aggregate_id: ID do documento de origem, obrigatório
        occurred_at: Instante da ocorrência em UTC
        version: Versão do formato serializado
    """

    event_id: str = field(default_factory=_new_event_id)
    aggregate_id: str = ""
    occurred_at: datetime = field(default_factory=_utcnow)
    version: int = 1

    def __post_init__(self):
        if not self.aggregate_id:
            raise ValueError(f"{type(self).__name__} exige aggregate_id")

    @property
    @abstractmethod
    def aggregate_type(self) -> str:
        """Coleção lógica do documento de origem ("Ticket", "User")."""

    @property
    def event_type(self) -> str:
        return type(self).__name__

    def payload(self) -> Dict[str, Any]:
        """Campos próprios do evento. Subclasses podem restringir ou truncar."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name not in ENVELOPE_FIELDS
        }

    def to_dict(self) -> Dict[str, Any]:
        """
        Envelope serializável usado pela fila Celery e pelo log.

        O bloco "data" vem de payload(); o restante é o envelope comum.
        """
        envelope = {name: getattr(self, name) for name in ("event_id", "aggregate_id", "version")}
        envelope.update(
            event_type=self.event_type,
            aggregate_type=self.aggregate_type,
            occurred_at=self.occurred_at.isoformat(),
            data=self.payload(),
        )
        return envelope

    def __str__(self) -> str:
        return f"{self.event_type}[{self.aggregate_type}:{self.aggregate_id}] @ {self.occurred_at:%Y-%m-%dT%H:%M:%S}"
