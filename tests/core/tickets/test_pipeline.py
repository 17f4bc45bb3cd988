"""
Testes do pipeline de filtro/ordenação de tickets.

Coverage:
- Correção do filtro: todo item retornado satisfaz os critérios
  e todo item que satisfaz é retornado
- Idempotência do filtro
- Ordenação asc é o reverso da desc (sem empates)
- Ordem de severidade e valores ausentes no fim
- Entrada nunca modificada
"""

from datetime import timedelta

import pytest

from servicedesk.core.tickets.dtos import (
    ADMIN_SEARCH,
    FilterCriteria,
    SortCriteria,
    TICKET_LIST_SEARCH,
)
from servicedesk.core.tickets.pipeline import (
    distinct_categories,
    filter_sort,
    matches,
    sort_tickets,
)

from tests.conftest import BASE_TIME


@pytest.fixture
def tickets(make_ticket):
    return [
        make_ticket(id="a", title="Impressora travada", status="pending", priority="high", category="Hardware"),
        make_ticket(id="b", title="VPN lenta", status="pending", priority="low", category="Rede"),
        make_ticket(id="c", title="Senha expirada", status="resolved", priority="high", category="Acesso"),
        make_ticket(id="d", title="Monitor piscando", description="Cabo da impressora?", status="closed", priority="urgent", category="Hardware"),
        make_ticket(id="e", title="Wi-Fi caiu", status="pending", priority="medium", category="Rede"),
    ]


CRITERIA = [
    FilterCriteria(),
    FilterCriteria(status="pending"),
    FilterCriteria(status="pending", priority="high"),
    FilterCriteria(search="IMPRESSORA"),
    FilterCriteria(category="Rede", priority="all"),
    FilterCriteria(search="vpn", status="resolved"),
]


def _satisfies(ticket, criteria):
    term = (criteria.search or "").lower()
    if term and not any(term in str(getattr(ticket, f)).lower() for f in criteria.search_fields):
        return False
    for name in ("status", "priority", "category"):
        expected = getattr(criteria, name)
        if expected not in (None, "", "all") and getattr(ticket, name) != expected:
            return False
    return True


class TestFiltro:
    """Testes do filtro."""

    @pytest.mark.parametrize("criteria", CRITERIA)
    def test_filtro_correto_e_completo(self, tickets, criteria):
        result = filter_sort(tickets, criteria)

        assert all(_satisfies(t, criteria) for t in result)
        assert {t.id for t in result} == {t.id for t in tickets if _satisfies(t, criteria)}

    @pytest.mark.parametrize("criteria", CRITERIA)
    def test_filtro_idempotente(self, tickets, criteria):
        once = filter_sort(tickets, criteria)

        assert filter_sort(once, criteria) == once

    def test_pending_high_createdat_desc(self, make_ticket):
        t1 = make_ticket(id="T1", status="pending", priority="high", created_at=BASE_TIME + timedelta(hours=1))
        t2 = make_ticket(id="T2", status="pending", priority="low", created_at=BASE_TIME + timedelta(hours=2))
        t3 = make_ticket(id="T3", status="resolved", priority="high", created_at=BASE_TIME + timedelta(hours=3))
        t4 = make_ticket(id="T4", status="pending", priority="high", created_at=BASE_TIME + timedelta(hours=4))

        result = filter_sort(
            [t1, t2, t3, t4],
            FilterCriteria(status="pending", priority="high"),
            SortCriteria.parse("createdAt_desc"),
        )

        assert [t.id for t in result] == ["T4", "T1"]

    def test_busca_case_insensitive_em_descricao(self, tickets):
        result = filter_sort(tickets, FilterCriteria(search="impressora"))

        assert {t.id for t in result} == {"a", "d"}

    def test_campos_de_busca_da_lista_de_tickets(self, tickets):
        result = filter_sort(tickets, FilterCriteria(search="rede", search_fields=TICKET_LIST_SEARCH))

        assert {t.id for t in result} == {"b", "e"}

    def test_busca_por_email_na_visao_admin(self, make_ticket):
        tickets = [
            make_ticket(id="x", user_email="ana@example.com"),
            make_ticket(id="y", user_email="bruno@example.com"),
        ]

        result = filter_sort(tickets, FilterCriteria(search="BRUNO", search_fields=ADMIN_SEARCH))

        assert [t.id for t in result] == ["y"]

    def test_busca_so_espacos_nao_filtra(self, tickets):
        assert len(filter_sort(tickets, FilterCriteria(search="   "))) == len(tickets)

    def test_criterio_vazio(self):
        assert FilterCriteria().is_empty
        assert FilterCriteria(status="all", search="").is_empty
        assert not FilterCriteria(priority="low").is_empty

    def test_matches_status_legado(self, make_ticket):
        ticket = make_ticket(status="in-progress")

        assert matches(ticket, FilterCriteria(status="in-progress"))
        assert not matches(ticket, FilterCriteria(status="pending"))

    def test_entrada_nao_modificada(self, tickets):
        snapshot = list(tickets)

        filter_sort(tickets, FilterCriteria(status="pending"), SortCriteria.parse("priority_asc"))

        assert tickets == snapshot


class TestOrdenacao:
    """Testes da ordenação."""

    def test_createdat_asc_reverso_de_desc(self, tickets):
        asc = sort_tickets(tickets, SortCriteria("createdAt", "asc"))
        desc = sort_tickets(tickets, SortCriteria("createdAt", "desc"))

        assert asc == list(reversed(desc))

    def test_prioridade_asc_mais_severa_primeiro(self, tickets):
        result = sort_tickets(tickets, SortCriteria("priority", "asc"))

        assert [t.priority for t in result] == ["urgent", "high", "high", "medium", "low"]

    def test_prioridade_desc(self, tickets):
        result = sort_tickets(tickets, SortCriteria("priority", "desc"))

        assert [t.priority for t in result] == ["low", "medium", "high", "high", "urgent"]

    def test_ordenacao_estavel_em_empates(self, tickets):
        result = sort_tickets(tickets, SortCriteria("priority", "asc"))

        # "a" precede "c" na snapshot; ambos high
        assert [t.id for t in result if t.priority == "high"] == ["a", "c"]

    def test_prioridade_desconhecida_no_fim(self, make_ticket):
        tickets = [
            make_ticket(id="x", priority="blocker"),
            make_ticket(id="y", priority="low"),
            make_ticket(id="z", priority="urgent"),
        ]

        for order in ("asc", "desc"):
            result = sort_tickets(tickets, SortCriteria("priority", order))
            assert result[-1].id == "x"

    def test_createdat_pendente_no_fim(self, make_ticket):
        tickets = [
            make_ticket(id="pending-ts", created_at=None),
            make_ticket(id="old", created_at=BASE_TIME),
            make_ticket(id="new", created_at=BASE_TIME + timedelta(days=1)),
        ]

        assert [t.id for t in sort_tickets(tickets, SortCriteria("createdAt", "desc"))] == ["new", "old", "pending-ts"]
        assert [t.id for t in sort_tickets(tickets, SortCriteria("createdAt", "asc"))] == ["old", "new", "pending-ts"]

    def test_ordenacao_padrao_createdat_desc(self, tickets):
        result = filter_sort(tickets)

        assert [t.id for t in result] == ["e", "d", "c", "b", "a"]


class TestCategorias:
    def test_distinct_categories(self, tickets):
        assert distinct_categories(tickets) == ["Acesso", "Hardware", "Rede"]
