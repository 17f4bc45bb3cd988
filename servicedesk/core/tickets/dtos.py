"""
Data Transfer Objects (DTOs) do Domínio de Tickets.

DTOs são estruturas simples para transportar dados entre camadas.

Tipos de DTOs:
- Input DTOs: Dados de entrada de formulários (criação de ticket)
- Criteria DTOs: Critérios de filtro/ordenação aplicados à projeção

Todos são imutáveis (frozen=True): critérios servem de chave
para comparar consultas e não podem mudar depois de construídos.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from servicedesk.core.shared.filters import is_unconstrained

from .entities import TicketPriority


# Campos de busca textual usados por cada view de lista
MY_TICKETS_SEARCH: Tuple[str, ...] = ("title", "description")
TICKET_LIST_SEARCH: Tuple[str, ...] = ("title", "category")
ADMIN_SEARCH: Tuple[str, ...] = ("title", "user_email")


# =============================================================================
# INPUT DTOs (Entrada)
# =============================================================================

@dataclass(frozen=True)
class CreateTicketInputDTO:
    """
    DTO de entrada para criar ticket.

    Status, autor e timestamps não fazem parte da entrada:
    são definidos pelo serviço a partir da identidade.

    Attributes:
        title: Título do ticket
        description: Descrição detalhada
        category: Categoria
        priority: Prioridade (valor do enum, ex: "high")
    """

    title: str
    description: str
    category: str
    priority: str = TicketPriority.MEDIUM.value

    def to_dict(self) -> dict:
        """Converte para dicionário."""
        return {
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "priority": self.priority,
        }


# =============================================================================
# CRITERIA DTOs (Filtro/Ordenação)
# =============================================================================

@dataclass(frozen=True)
class FilterCriteria:
    """
    Critérios de filtro aplicados à projeção.

    Attributes:
        search: Termo de busca (case-insensitive, substring)
        status: Status exato
        priority: Prioridade exata
        category: Categoria exata
        search_fields: Atributos do Ticket onde a busca é feita
    """

    search: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    category: Optional[str] = None
    search_fields: Tuple[str, ...] = MY_TICKETS_SEARCH

    @property
    def is_empty(self) -> bool:
        return all(
            is_unconstrained(value)
            for value in (self.search, self.status, self.priority, self.category)
        )


@dataclass(frozen=True)
class SortCriteria:
    """
    Critério de ordenação.

    Attributes:
        field: "createdAt" ou "priority"
        order: "asc" ou "desc"

    Example:
        SortCriteria.parse("priority_desc")
    """

    field: str = "createdAt"
    order: str = "desc"

    FIELDS = ("createdAt", "priority")
    ORDERS = ("asc", "desc")

    def __post_init__(self):
        if self.field not in self.FIELDS:
            raise ValueError(f"Campo de ordenação inválido: {self.field}")
        if self.order not in self.ORDERS:
            raise ValueError(f"Direção de ordenação inválida: {self.order}")

    @property
    def descending(self) -> bool:
        return self.order == "desc"

    @classmethod
    def parse(cls, option: str) -> "SortCriteria":
        """
        Converte opção de seletor "<campo>_<direção>" em SortCriteria.

        Raises:
            ValueError: Se a opção não tiver o formato esperado
        """
        field_name, sep, order = (option or "").rpartition("_")
        if not sep:
            raise ValueError(f"Opção de ordenação inválida: {option}")
        return cls(field=field_name, order=order)
