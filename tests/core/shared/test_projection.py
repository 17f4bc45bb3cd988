"""
Testes da SnapshotProjection.

Coverage:
- loading até a primeira snapshot
- Snapshot substitui a lista inteira
- Erro terminal: items congelados, loading=False
- Documento inválido vira SubscriptionError
- No máximo uma subscription ativa por projeção
- Callbacks após close são ignorados
"""

import pytest

from servicedesk.core.shared.exceptions import GatewayError, SubscriptionError
from servicedesk.core.shared.interfaces import QueryShape
from servicedesk.core.shared.projection import SnapshotProjection
from servicedesk.core.tickets.mappers import TicketMapper
from servicedesk.core.tickets.ports import TicketQueries


@pytest.fixture
def projection(manual_gateway):
    return SnapshotProjection(manual_gateway, TicketMapper.to_entity)


class TestCicloDeVida:
    """Testes de abertura, entrega e fechamento."""

    def test_loading_ate_primeira_snapshot(self, manual_gateway, projection):
        handle = projection.open(TicketQueries.all_tickets())

        state = handle.current()
        assert state.loading is True
        assert state.items == []
        assert state.error is None

        manual_gateway.flush()

        state = handle.current()
        assert state.loading is False
        assert state.items == []

    def test_snapshot_substitui_lista(self, manual_gateway, projection):
        manual_gateway.seed("tickets", "a", {"title": "A", "createdAt": None})
        handle = projection.open(TicketQueries.all_tickets())
        manual_gateway.flush()
        assert [t.id for t in handle.current().items] == ["a"]

        manual_gateway.delete_document("tickets", "a")
        manual_gateway.seed("tickets", "b", {"title": "B"})
        manual_gateway.flush()

        assert [t.id for t in handle.current().items] == ["b"]

    def test_snapshots_entregues_em_ordem(self, manual_gateway, projection):
        handle = projection.open(TicketQueries.all_tickets())
        manual_gateway.seed("tickets", "a", {"title": "A"})
        manual_gateway.seed("tickets", "b", {"title": "B"})

        sizes = []
        handle.subscribe(lambda state: sizes.append(len(state.items)))
        manual_gateway.flush()

        assert sizes == [0, 1, 2]

    def test_current_retorna_copia(self, gateway):
        gateway.seed("tickets", "a", {"title": "A"})
        handle = SnapshotProjection(gateway, TicketMapper.to_entity).open(TicketQueries.all_tickets())

        handle.current().items.clear()

        assert len(handle.current().items) == 1

    def test_close_cancela_subscription(self, manual_gateway, projection):
        handle = projection.open(TicketQueries.all_tickets())

        handle.close()
        handle.close()

        assert handle.closed
        assert manual_gateway.active_subscriptions == []

    def test_callback_apos_close_ignorado(self, manual_gateway, projection):
        handle = projection.open(TicketQueries.all_tickets())
        manual_gateway.seed("tickets", "a", {"title": "A"})

        handle.close()
        manual_gateway.flush()

        assert handle.current().items == []
        assert handle.current().loading is True

    def test_context_manager_fecha_handle(self, gateway):
        projection = SnapshotProjection(gateway, TicketMapper.to_entity)

        with projection.open(TicketQueries.all_tickets()) as handle:
            assert handle.active

        assert handle.closed
        assert gateway.active_subscriptions == []

    def test_unsubscribe_remove_listener(self, gateway):
        handle = SnapshotProjection(gateway, TicketMapper.to_entity).open(TicketQueries.all_tickets())
        calls = []
        unsubscribe = handle.subscribe(calls.append)

        unsubscribe()
        gateway.seed("tickets", "a", {"title": "A"})

        assert calls == []


class TestErros:
    """Testes de falha da live query."""

    def test_erro_congela_items(self, gateway):
        gateway.seed("tickets", "a", {"title": "A"})
        handle = SnapshotProjection(gateway, TicketMapper.to_entity).open(TicketQueries.all_tickets())

        gateway.fail_subscription(None, GatewayError("conexão perdida"))
        gateway.seed("tickets", "b", {"title": "B"})

        state = handle.current()
        assert isinstance(state.error, SubscriptionError)
        assert state.loading is False
        assert [t.id for t in state.items] == ["a"]
        assert not handle.active

    def test_permissao_negada_na_abertura(self, gateway):
        gateway.denied_collections.add("tickets")

        handle = SnapshotProjection(gateway, TicketMapper.to_entity).open(TicketQueries.all_tickets())

        state = handle.current()
        assert isinstance(state.error, SubscriptionError)
        assert state.loading is False
        assert state.items == []

    def test_documento_invalido_vira_subscription_error(self, gateway):
        gateway.seed("tickets", "a", {"title": "A", "createdAt": "não é data"})

        handle = SnapshotProjection(gateway, TicketMapper.to_entity).open(TicketQueries.all_tickets())

        assert isinstance(handle.current().error, SubscriptionError)
        assert gateway.active_subscriptions == []

    def test_comentario_malformado_nao_derruba_escritor(self, gateway):
        handle = SnapshotProjection(gateway, TicketMapper.to_entity).open(TicketQueries.all_tickets())

        gateway.write_document("tickets", "t-x", {"title": "a", "updates": ["plain string"]})

        assert gateway.get_document("tickets", "t-x")["title"] == "a"
        assert isinstance(handle.current().error, SubscriptionError)
        assert handle.current().items == []

    def test_listener_recebe_estado_de_erro(self, manual_gateway, projection):
        handle = projection.open(TicketQueries.all_tickets())
        states = []
        handle.subscribe(states.append)

        manual_gateway.fail_subscription(None, GatewayError("offline"))

        assert states[-1].error is not None


class TestTrocaDeForma:
    """No máximo uma subscription ativa por projeção."""

    def test_mesma_forma_reutiliza_handle(self, gateway):
        projection = SnapshotProjection(gateway, TicketMapper.to_entity)

        first = projection.open(TicketQueries.for_user("u-1"))
        second = projection.open(TicketQueries.for_user("u-1"))

        assert first is second
        assert len(gateway.active_subscriptions) == 1

    def test_nova_forma_cancela_anterior(self, gateway):
        projection = SnapshotProjection(gateway, TicketMapper.to_entity)

        first = projection.open(TicketQueries.for_user("u-1", status="pending"))
        second = projection.open(TicketQueries.for_user("u-1", status="resolved"))

        assert first.closed
        assert not second.closed
        assert [s.shape for s in gateway.active_subscriptions] == [second.shape]

    def test_trocas_sucessivas_mantem_uma_subscription(self, gateway):
        projection = SnapshotProjection(gateway, TicketMapper.to_entity)

        for status in ("pending", "resolved", "closed", "all", "pending"):
            projection.open(TicketQueries.for_user("u-1", status=status))
            assert len(gateway.active_subscriptions) == 1

    def test_reabrir_apos_erro_cria_novo_handle(self, gateway):
        projection = SnapshotProjection(gateway, TicketMapper.to_entity)
        shape = QueryShape("tickets")
        first = projection.open(shape)
        gateway.fail_subscription(shape, GatewayError("offline"))

        second = projection.open(shape)

        assert second is not first
        assert second.current().error is None

    def test_close_da_projecao(self, gateway):
        projection = SnapshotProjection(gateway, TicketMapper.to_entity)
        projection.open(QueryShape("tickets"))

        projection.close()

        assert projection.handle is None
        assert gateway.active_subscriptions == []
