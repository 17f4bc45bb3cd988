"""
Testes do StatsAggregator.

Coverage:
- Contadores do usuário e taxa de resolução
- Contadores globais: resolved + pending + rejected + other == total
- "No data" quando não há tickets
- Recalculo a cada snapshot
- Modo global restrito a administradores
"""

import asyncio

import pytest

from servicedesk.core.shared.exceptions import AuthorizationError, GatewayError
from servicedesk.core.shared.projection import SnapshotProjection
from servicedesk.core.tickets.mappers import TicketMapper
from servicedesk.core.tickets.ports import TicketQueries
from servicedesk.core.tickets.stats import (
    NO_DATA,
    StatsAggregator,
    global_stats,
    scoped_stats,
)
from servicedesk.core.users.authorization import AuthorizationGate
from servicedesk.core.users.entities import UserProfile
from servicedesk.core.users.mappers import UserProfileMapper


class TestScopedStats:
    """Testes dos contadores do usuário."""

    def test_contadores(self, make_ticket):
        tickets = [
            make_ticket(status="pending", priority="urgent"),
            make_ticket(status="pending", priority="low"),
            make_ticket(status="resolved", priority="urgent"),
            make_ticket(status="closed", priority="high"),
        ]

        stats = scoped_stats(tickets)

        assert stats.total == 4
        assert stats.pending == 2
        assert stats.resolved == 1
        assert stats.urgent == 2
        assert stats.resolution_rate == 0.25
        assert stats.resolution_rate_display == "25.0%"

    def test_sem_tickets(self):
        stats = scoped_stats([])

        assert stats.total == 0
        assert stats.resolution_rate is None
        assert stats.resolution_rate_display == NO_DATA


class TestGlobalStats:
    """Testes dos contadores globais."""

    def test_contadores_globais(self, make_ticket):
        tickets = [
            make_ticket(status="pending", priority="high"),
            make_ticket(status="resolved", priority="high"),
            make_ticket(status="rejected", priority="low"),
            make_ticket(status="closed", priority="medium"),
            make_ticket(status="in-progress", priority="urgent"),
        ]
        users = [UserProfile(uid="a"), UserProfile(uid="b")]

        stats = global_stats(tickets, users)

        assert stats.total_users == 2
        assert stats.total_tickets == 5
        assert (stats.resolved, stats.pending, stats.rejected, stats.other) == (1, 1, 1, 2)
        assert stats.resolved + stats.pending + stats.rejected + stats.other == stats.total_tickets
        assert stats.by_status["in-progress"] == 1
        assert stats.by_priority == {"high": 2, "low": 1, "medium": 1, "urgent": 1}
        assert stats.resolution_rate_display == "20.0%"

    def test_sem_tickets_no_data(self):
        stats = global_stats([], [])

        assert stats.resolution_rate is None
        assert stats.resolution_rate_display == NO_DATA


class TestLiveStats:
    """Testes de estatísticas vivas."""

    def test_recalcula_a_cada_snapshot(self, gateway, seed_ticket):
        seed_ticket("T1", status="pending")
        handle = SnapshotProjection(gateway, TicketMapper.to_entity).open(TicketQueries.for_user("u-1"))
        live = StatsAggregator(AuthorizationGate(gateway)).watch_scoped(handle)
        values = []
        live.subscribe(values.append)

        assert live.value.pending == 1

        gateway.write_document("tickets", "T1", {"status": "resolved"})

        assert live.value.resolved == 1
        assert live.value.pending == 0
        assert values[-1] == live.value

    def test_loading_e_erro_refletem_projecao(self, manual_gateway):
        handle = SnapshotProjection(manual_gateway, TicketMapper.to_entity).open(TicketQueries.all_tickets())
        live = StatsAggregator(AuthorizationGate(manual_gateway)).watch_scoped(handle)

        assert live.loading
        manual_gateway.flush()
        assert not live.loading

        manual_gateway.fail_subscription(None, GatewayError("offline"))
        assert live.error is not None

    def test_close_para_de_observar(self, gateway, seed_ticket):
        handle = SnapshotProjection(gateway, TicketMapper.to_entity).open(TicketQueries.all_tickets())
        live = StatsAggregator(AuthorizationGate(gateway)).watch_scoped(handle)

        live.close()
        seed_ticket("T1")

        assert live.value.total == 0
        assert not handle.closed


class TestWatchGlobal:
    """Testes do modo global."""

    def _handles(self, gateway):
        tickets = SnapshotProjection(gateway, TicketMapper.to_entity).open(TicketQueries.all_tickets())
        users = SnapshotProjection(gateway, UserProfileMapper.to_entity).open(TicketQueries.all_users())
        return tickets, users

    def test_admin_recebe_estatisticas_globais(self, gateway, seed_admin, seed_ticket):
        seed_ticket("T1")
        seed_ticket("T2", status="resolved")
        tickets, users = self._handles(gateway)
        aggregator = StatsAggregator(AuthorizationGate(gateway))

        live = asyncio.run(aggregator.watch_global(seed_admin, tickets, users))

        assert live.value.total_tickets == 2
        assert live.value.total_users == 1
        assert live.value.resolution_rate_display == "50.0%"

    def test_usuario_comum_negado(self, gateway, user_identity):
        tickets, users = self._handles(gateway)
        aggregator = StatsAggregator(AuthorizationGate(gateway))

        with pytest.raises(AuthorizationError):
            asyncio.run(aggregator.watch_global(user_identity, tickets, users))

    def test_sem_identidade_negado(self, gateway):
        tickets, users = self._handles(gateway)

        with pytest.raises(AuthorizationError):
            asyncio.run(StatsAggregator(AuthorizationGate(gateway)).watch_global(None, tickets, users))
