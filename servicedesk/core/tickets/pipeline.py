"""
Pipeline de Filtro/Ordenação de tickets.

Funções puras aplicadas à lista materializada pela projeção,
sem ida ao servidor. A entrada nunca é modificada.

Regras:
- Busca textual: substring case-insensitive em qualquer campo de search_fields
- Filtros de igualdade: aplicados apenas se o valor não é vazio nem "all"
- Ordenação estável: empates mantêm a ordem da snapshot
- createdAt pendente (None) e prioridades desconhecidas vão sempre para o fim
- priority asc = mais severa primeiro (urgent, high, medium, low)
"""

from typing import Iterable, List, Optional

from servicedesk.core.shared.filters import is_unconstrained

from .dtos import FilterCriteria, SortCriteria
from .entities import Ticket


def _normalize(value: object) -> str:
    return str(value or "").lower()


def matches(ticket: Ticket, criteria: FilterCriteria) -> bool:
    """Verifica se o ticket satisfaz todos os predicados não vazios."""
    term = (criteria.search or "").strip().lower()
    if term:
        haystacks = (_normalize(getattr(ticket, name, "")) for name in criteria.search_fields)
        if not any(term in haystack for haystack in haystacks):
            return False

    if not is_unconstrained(criteria.status) and ticket.status != criteria.status:
        return False
    if not is_unconstrained(criteria.priority) and ticket.priority != criteria.priority:
        return False
    if not is_unconstrained(criteria.category) and ticket.category != criteria.category:
        return False

    return True


def _priority_rank(ticket: Ticket) -> Optional[int]:
    level = ticket.priority_level
    return level.severity_rank if level is not None else None


def sort_tickets(tickets: Iterable[Ticket], sort: SortCriteria) -> List[Ticket]:
    """Ordena tickets (estável); chaves ausentes vão para o fim."""
    tickets = list(tickets)

    if sort.field == "priority":
        ranked = [t for t in tickets if _priority_rank(t) is not None]
        unranked = [t for t in tickets if _priority_rank(t) is None]
        ranked.sort(key=_priority_rank, reverse=sort.descending)
        return ranked + unranked

    stamped = [t for t in tickets if t.created_at is not None]
    pending = [t for t in tickets if t.created_at is None]
    stamped.sort(key=lambda t: t.created_at, reverse=sort.descending)
    return stamped + pending


def filter_sort(
    tickets: Iterable[Ticket],
    criteria: Optional[FilterCriteria] = None,
    sort: Optional[SortCriteria] = None,
) -> List[Ticket]:
    """
    Aplica filtro e ordenação à lista materializada.

    Args:
        tickets: Itens da projeção
        criteria: Critérios de filtro (padrão: sem filtro)
        sort: Ordenação (padrão: createdAt desc)

    Returns:
        Nova lista filtrada e ordenada

    Example:
        filter_sort(
            state.items,
            FilterCriteria(status="pending", priority="high"),
            SortCriteria.parse("createdAt_desc"),
        )
    """
    criteria = criteria or FilterCriteria()
    sort = sort or SortCriteria()
    return sort_tickets((t for t in tickets if matches(t, criteria)), sort)


def distinct_categories(tickets: Iterable[Ticket]) -> List[str]:
    """Categorias presentes na lista (para o seletor), em ordem alfabética."""
    return sorted({t.category for t in tickets if t.category})
