"""
Testes dos Event Publishers.

Coverage:
- LoggingEventPublisher: log e handlers locais
- CeleryEventPublisher: despacho via dispatch_domain_event.delay
- get_event_publisher: seleção por modo
"""

import logging
from unittest.mock import Mock, patch

import pytest

from servicedesk.adapters.django_app.events.publishers import (
    CeleryEventPublisher,
    InMemoryEventPublisher,
    LoggingEventPublisher,
    get_event_publisher,
)
from servicedesk.core.tickets.events import TicketRejectedEvent

DISPATCH = "servicedesk.adapters.django_app.events.handlers.dispatch_domain_event"


@pytest.fixture
def event():
    return TicketRejectedEvent(
        aggregate_id="T2",
        previous_status="pending",
        reason="duplicate of T1",
        user_email="ana@example.com",
    )


class TestLoggingEventPublisher:
    """Testes para LoggingEventPublisher."""

    def test_loga_evento(self, event, caplog):
        with caplog.at_level(logging.INFO):
            LoggingEventPublisher().publish(event)

        assert "[EVENT] TicketRejectedEvent" in caplog.text
        assert "duplicate of T1" in caplog.text

    def test_executa_handlers_registrados(self, event):
        publisher = LoggingEventPublisher()
        handler = Mock()
        publisher.register_handler("TicketRejectedEvent", handler)

        publisher.publish(event)

        handler.assert_called_once_with(event)

    def test_erro_em_handler_nao_propaga(self, event):
        publisher = LoggingEventPublisher()
        publisher.register_handler("TicketRejectedEvent", Mock(side_effect=RuntimeError("boom")))
        other = Mock()
        publisher.register_handler("TicketRejectedEvent", other)

        publisher.publish(event)

        other.assert_called_once_with(event)


class TestCeleryEventPublisher:
    """Testes para CeleryEventPublisher."""

    def test_despacha_evento_serializado(self, event):
        with patch(DISPATCH) as dispatch:
            CeleryEventPublisher(also_log=False).publish(event)

        event_type, payload = dispatch.delay.call_args[0]
        assert event_type == "TicketRejectedEvent"
        assert payload["aggregate_id"] == "T2"
        assert payload["aggregate_type"] == "Ticket"
        assert payload["data"]["reason"] == "duplicate of T1"

    def test_broker_indisponivel_nao_propaga(self, event, caplog):
        with patch(DISPATCH) as dispatch:
            dispatch.delay.side_effect = ConnectionError("broker fora")
            CeleryEventPublisher(also_log=False).publish(event)

        assert "Falha ao publicar evento no Celery" in caplog.text


class TestInMemoryEventPublisher:
    def test_filtra_por_tipo(self, event):
        publisher = InMemoryEventPublisher()
        publisher.publish_batch([event, event])

        assert len(publisher.get_events_by_type("TicketRejectedEvent")) == 2
        assert publisher.get_events_by_type("TicketCreatedEvent") == []

        publisher.clear()
        assert publisher.published_events == []


class TestGetEventPublisher:
    def test_modos(self):
        assert isinstance(get_event_publisher("sync"), LoggingEventPublisher)
        assert isinstance(get_event_publisher("celery"), CeleryEventPublisher)

    def test_modo_invalido(self):
        with pytest.raises(ValueError):
            get_event_publisher("kafka")
