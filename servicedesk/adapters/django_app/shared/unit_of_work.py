"""
Unit of Work - Implementações.

O gateway de documentos não oferece transação multi-documento;
o Unit of Work coordena a publicação de eventos com a escrita:
eventos enfileirados dentro do bloco só são publicados se o bloco
terminou sem exceção.

Implementações:
- DjangoUnitOfWork: publica após o commit da transação Django corrente
  (transaction.on_commit), ou imediatamente em autocommit
- InMemoryUnitOfWork: para testes, guarda os eventos "publicados"
"""

from typing import List, Optional
import logging

from django.db import connection, transaction

from servicedesk.core.shared.events import DomainEvent
from servicedesk.core.shared.interfaces import EventPublisher, UnitOfWork

logger = logging.getLogger(__name__)


class DjangoUnitOfWork(UnitOfWork):
    """
    Implementação Django do Unit of Work.

    Se o bloco roda dentro de transaction.atomic(), a publicação
    é adiada para depois do commit do banco; um rollback do banco
    descarta os eventos junto com as escritas.

    Example:
        with DjangoUnitOfWork(event_publisher=publisher) as uow:
            gateway.update_document("tickets", ticket_id, patch)
            uow.publish_event(TicketStatusChangedEvent(...))
        # Eventos publicados após commit
    """

    def __init__(self, event_publisher: Optional[EventPublisher] = None):
        super().__init__()
        self._event_publisher = event_publisher
        self._committed = False
        self._rolled_back = False

    def _begin(self) -> None:
        self._committed = False
        self._rolled_back = False

    def commit(self) -> None:
        """Publica eventos enfileirados (após o commit do banco, se houver)."""
        events = self.collect_events()
        self.clear_events()
        self._committed = True

        if not events:
            return

        if connection.in_atomic_block:
            transaction.on_commit(lambda: self._publish_events(events))
            logger.debug(f"{len(events)} evento(s) aguardando commit do banco")
        else:
            self._publish_events(events)

    def rollback(self) -> None:
        """Descarta eventos enfileirados."""
        if self._events:
            logger.debug(f"Descartando {len(self._events)} evento(s)")
        self._rolled_back = True
        self.clear_events()

    def _publish_events(self, events: List[DomainEvent]) -> None:
        for event in events:
            logger.info(
                f"Publishing event: {event.event_type} "
                f"for aggregate {event.aggregate_id}"
            )

            if self._event_publisher:
                try:
                    self._event_publisher.publish(event)
                except Exception as e:
                    # A escrita já foi aceita; falha de publicação não a desfaz
                    logger.error(f"Failed to publish event: {e}")

    @property
    def is_committed(self) -> bool:
        return self._committed

    @property
    def is_rolled_back(self) -> bool:
        return self._rolled_back


class InMemoryUnitOfWork(UnitOfWork):
    """
    Unit of Work em memória para testes.

    Example:
        uow = InMemoryUnitOfWork()
        with uow:
            uow.publish_event(event)

        assert uow.committed
        assert len(uow.published_events) == 1
    """

    def __init__(self):
        super().__init__()
        self._committed = False
        self._rolled_back = False
        self._published_events: List[DomainEvent] = []

    def commit(self) -> None:
        self._committed = True
        self._published_events.extend(self._events)
        self.clear_events()

    def rollback(self) -> None:
        self._rolled_back = True
        self.clear_events()

    @property
    def committed(self) -> bool:
        return self._committed

    @property
    def rolled_back(self) -> bool:
        return self._rolled_back

    @property
    def published_events(self) -> List[DomainEvent]:
        """Eventos que foram "publicados"."""
        return list(self._published_events)

    def reset(self) -> None:
        """Reset para próximo teste."""
        self._committed = False
        self._rolled_back = False
        self._published_events.clear()
        self.clear_events()
