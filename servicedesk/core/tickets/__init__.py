"""
Domínio de Tickets.

Este módulo contém toda a lógica de negócio relacionada a tickets
de suporte, incluindo:
- Entidades (Ticket, TicketStatus, TicketPriority)
- Pipeline de filtro/ordenação da projeção
- Workflow de status (rejeição em duas fases, comentários)
- Use Cases (CreateTicketService, GetTicketService)
- Estatísticas (escopo do usuário e globais)
- Domain Events
"""

from .entities import (
    LegacyTicketStatus,
    Ticket,
    TicketPriority,
    TicketStatus,
    TicketUpdate,
)
from .events import (
    TicketCommentAddedEvent,
    TicketCreatedEvent,
    TicketRejectedEvent,
    TicketStatusChangedEvent,
)
from .dtos import (
    ADMIN_SEARCH,
    MY_TICKETS_SEARCH,
    TICKET_LIST_SEARCH,
    CreateTicketInputDTO,
    FilterCriteria,
    SortCriteria,
)
from .mappers import TicketMapper
from .pipeline import filter_sort, matches
from .ports import TICKETS_COLLECTION, TicketQueries
from .stats import GlobalStats, LiveStats, ScopedStats, StatsAggregator, global_stats, scoped_stats
from .use_cases import CreateTicketService, GetTicketService
from .workflow import TRANSITIONS, StagedRejection, TicketWorkflowController, can_transition

__all__ = [
    # Entities
    "LegacyTicketStatus",
    "Ticket",
    "TicketPriority",
    "TicketStatus",
    "TicketUpdate",
    # Events
    "TicketCommentAddedEvent",
    "TicketCreatedEvent",
    "TicketRejectedEvent",
    "TicketStatusChangedEvent",
    # DTOs
    "ADMIN_SEARCH",
    "MY_TICKETS_SEARCH",
    "TICKET_LIST_SEARCH",
    "CreateTicketInputDTO",
    "FilterCriteria",
    "SortCriteria",
    # Mappers / Ports
    "TicketMapper",
    "TICKETS_COLLECTION",
    "TicketQueries",
    # Pipeline
    "filter_sort",
    "matches",
    # Stats
    "GlobalStats",
    "LiveStats",
    "ScopedStats",
    "StatsAggregator",
    "global_stats",
    "scoped_stats",
    # Use Cases / Workflow
    "CreateTicketService",
    "GetTicketService",
    "TRANSITIONS",
    "StagedRejection",
    "TicketWorkflowController",
    "can_transition",
]
