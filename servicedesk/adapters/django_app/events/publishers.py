"""
Publishers de Domain Events.

Três saídas para o port EventPublisher:
- LoggingEventPublisher: escreve no log e chama handlers locais
- CeleryEventPublisher: enfileira no worker via dispatch_domain_event
- InMemoryEventPublisher: acumula eventos para asserções em teste

O modo é escolhido por settings.EVENT_PUBLISHER_MODE ("sync" ou "celery").
"""

from typing import Callable, Dict, List
import json
import logging

from servicedesk.core.shared.events import DomainEvent
from servicedesk.core.shared.interfaces import EventPublisher

logger = logging.getLogger(__name__)

Handler = Callable[[DomainEvent], None]


class LoggingEventPublisher(EventPublisher):
    """
    Modo "sync": sem broker, cada evento vira uma linha de log
    e os handlers registrados rodam no mesmo processo.
    """

    def __init__(self, log_level: int = logging.INFO):
        self._level = log_level
        self._subscribers: Dict[str, List[Handler]] = {}

    def register_handler(self, event_type: str, handler: Handler) -> None:
        self._subscribers.setdefault(event_type, []).append(handler)

    def publish(self, event: DomainEvent) -> None:
        logger.log(
            self._level,
            "[EVENT] %s | aggregate=%s | data=%s",
            event.event_type,
            event.aggregate_id,
            json.dumps(event.payload(), default=str),
        )

        for handler in self._subscribers.get(event.event_type, ()):
            try:
                handler(event)
            except Exception:
                # Um handler com defeito não impede os demais
                logger.exception("Handler local falhou para %s", event.event_type)


class CeleryEventPublisher(EventPublisher):
    """
    Modo "celery": envia o envelope to_dict() para dispatch_domain_event,
    que escolhe a task específica no worker.
    """

    def __init__(self, also_log: bool = True):
        self._log_enabled = also_log

    def publish(self, event: DomainEvent) -> None:
        from servicedesk.adapters.django_app.events.handlers import dispatch_domain_event

        envelope = event.to_dict()
        if self._log_enabled:
            logger.info("[EVENT->CELERY] %s | aggregate=%s", event.event_type, event.aggregate_id)

        try:
            dispatch_domain_event.delay(event.event_type, envelope)
        except Exception:
            # A escrita já foi confirmada; broker fora do ar só perde a notificação
            logger.error("Falha ao publicar evento no Celery: %s", event.event_type, exc_info=True)


class InMemoryEventPublisher(EventPublisher):
    """Guarda os eventos recebidos, na ordem de publicação."""

    def __init__(self):
        self._events: List[DomainEvent] = []

    def publish(self, event: DomainEvent) -> None:
        self._events.append(event)

    @property
    def published_events(self) -> List[DomainEvent]:
        return list(self._events)

    def get_events_by_type(self, event_type: str) -> List[DomainEvent]:
        return [event for event in self._events if event.event_type == event_type]

    def clear(self) -> None:
        del self._events[:]


_PUBLISHERS: Dict[str, Callable[[], EventPublisher]] = {
    "sync": LoggingEventPublisher,
    "celery": CeleryEventPublisher,
}


def get_event_publisher(mode: str = "sync") -> EventPublisher:
    """
    Instancia o publisher do modo pedido.

    Raises:
        ValueError: modo fora de "sync" e "celery"
    """
    try:
        factory = _PUBLISHERS[mode]
    except KeyError:
        raise ValueError(f"EVENT_PUBLISHER_MODE inválido: {mode}") from None
    return factory()
