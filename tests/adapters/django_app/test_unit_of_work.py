"""
Testes das implementações de Unit of Work.

Coverage:
- InMemoryUnitOfWork: commit publica, rollback descarta
- DjangoUnitOfWork: publicação imediata em autocommit,
  adiada para o commit dentro de transaction.atomic()
"""

from unittest.mock import Mock

import pytest
from django.db import transaction

from servicedesk.adapters.django_app.events.publishers import InMemoryEventPublisher
from servicedesk.adapters.django_app.shared.unit_of_work import (
    DjangoUnitOfWork,
    InMemoryUnitOfWork,
)
from servicedesk.core.tickets.events import TicketStatusChangedEvent


def _event(ticket_id="T1"):
    return TicketStatusChangedEvent(
        aggregate_id=ticket_id,
        previous_status="pending",
        new_status="resolved",
    )


class TestInMemoryUnitOfWork:
    """Testes para InMemoryUnitOfWork."""

    def test_commit_publica_eventos(self):
        uow = InMemoryUnitOfWork()

        with uow:
            uow.publish_event(_event())

        assert uow.committed
        assert len(uow.published_events) == 1
        assert uow.collect_events() == []

    def test_rollback_em_erro(self):
        uow = InMemoryUnitOfWork()

        with pytest.raises(RuntimeError):
            with uow:
                uow.publish_event(_event())
                raise RuntimeError("falhou")

        assert uow.rolled_back
        assert uow.published_events == []

    def test_reset(self):
        uow = InMemoryUnitOfWork()
        with uow:
            uow.publish_event(_event())

        uow.reset()

        assert not uow.committed
        assert uow.published_events == []


@pytest.mark.django_db(transaction=True)
class TestDjangoUnitOfWork:
    """Testes para DjangoUnitOfWork."""

    def test_publica_imediatamente_em_autocommit(self):
        publisher = InMemoryEventPublisher()

        with DjangoUnitOfWork(event_publisher=publisher) as uow:
            uow.publish_event(_event())

        assert uow.is_committed
        assert [e.event_type for e in publisher.published_events] == ["TicketStatusChangedEvent"]

    def test_rollback_descarta_eventos(self):
        publisher = InMemoryEventPublisher()
        uow = DjangoUnitOfWork(event_publisher=publisher)

        with pytest.raises(ValueError):
            with uow:
                uow.publish_event(_event())
                raise ValueError("erro")

        assert uow.is_rolled_back
        assert publisher.published_events == []

    def test_publicacao_adiada_ate_commit_do_banco(self):
        publisher = InMemoryEventPublisher()

        with transaction.atomic():
            with DjangoUnitOfWork(event_publisher=publisher) as uow:
                uow.publish_event(_event())
            assert publisher.published_events == []

        assert len(publisher.published_events) == 1

    def test_rollback_do_banco_descarta_eventos(self):
        publisher = InMemoryEventPublisher()

        with pytest.raises(RuntimeError):
            with transaction.atomic():
                with DjangoUnitOfWork(event_publisher=publisher) as uow:
                    uow.publish_event(_event())
                raise RuntimeError("rollback")

        assert publisher.published_events == []

    def test_falha_do_publisher_nao_propaga(self):
        publisher = Mock()
        publisher.publish.side_effect = ConnectionError("broker fora")

        with DjangoUnitOfWork(event_publisher=publisher) as uow:
            uow.publish_event(_event())

        assert uow.is_committed
        publisher.publish.assert_called_once()
