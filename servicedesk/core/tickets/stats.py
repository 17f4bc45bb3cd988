"""
Stats Aggregator - Contadores derivados das projeções.

Modos:
- Escopo do usuário: total, resolvidos, pendentes, urgentes
- Global (somente admin): usuários, tickets, resolvidos, pendentes,
  rejeitados, contagem por status e por prioridade

Cada cálculo é uma varredura linear da lista materializada e é
refeito a cada nova snapshot da projeção observada.

Taxa de resolução: None quando não há tickets (exibida como "No data").
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, Generic, Iterable, List, Optional, TypeVar
import logging

from servicedesk.core.shared.exceptions import AuthorizationError, SubscriptionError
from servicedesk.core.shared.projection import ProjectionHandle, ProjectionState
from servicedesk.core.users.authorization import AuthorizationGate
from servicedesk.core.users.entities import Identity, UserProfile

from .entities import Ticket, TicketPriority, TicketStatus

logger = logging.getLogger(__name__)

S = TypeVar("S")

NO_DATA = "No data"


def _rate(resolved: int, total: int) -> Optional[float]:
    if total == 0:
        return None
    return resolved / total


def _rate_display(rate: Optional[float]) -> str:
    if rate is None:
        return NO_DATA
    return f"{rate * 100:.1f}%"


@dataclass(frozen=True)
class ScopedStats:
    """Contadores do dashboard de um usuário."""

    total: int = 0
    resolved: int = 0
    pending: int = 0
    urgent: int = 0

    @property
    def resolution_rate(self) -> Optional[float]:
        return _rate(self.resolved, self.total)

    @property
    def resolution_rate_display(self) -> str:
        return _rate_display(self.resolution_rate)


@dataclass(frozen=True)
class GlobalStats:
    """
    Contadores do dashboard administrativo.

    Invariante: resolved + pending + rejected + other == total_tickets
    """

    total_users: int = 0
    total_tickets: int = 0
    resolved: int = 0
    pending: int = 0
    rejected: int = 0
    by_status: Dict[str, int] = field(default_factory=dict)
    by_priority: Dict[str, int] = field(default_factory=dict)

    @property
    def other(self) -> int:
        """Tickets em qualquer outro status (closed, legado, desconhecido)."""
        return self.total_tickets - self.resolved - self.pending - self.rejected

    @property
    def resolution_rate(self) -> Optional[float]:
        return _rate(self.resolved, self.total_tickets)

    @property
    def resolution_rate_display(self) -> str:
        return _rate_display(self.resolution_rate)


def scoped_stats(tickets: Iterable[Ticket]) -> ScopedStats:
    """Contadores de um usuário em uma única passada."""
    total = resolved = pending = urgent = 0
    for ticket in tickets:
        total += 1
        if ticket.status == TicketStatus.RESOLVED.value:
            resolved += 1
        elif ticket.status == TicketStatus.PENDING.value:
            pending += 1
        if ticket.priority == TicketPriority.URGENT.value:
            urgent += 1
    return ScopedStats(total=total, resolved=resolved, pending=pending, urgent=urgent)


def global_stats(tickets: Iterable[Ticket], users: Iterable[UserProfile]) -> GlobalStats:
    """Contadores globais em uma única passada por coleção."""
    by_status: Dict[str, int] = {}
    by_priority: Dict[str, int] = {}
    total = 0
    for ticket in tickets:
        total += 1
        by_status[ticket.status] = by_status.get(ticket.status, 0) + 1
        by_priority[ticket.priority] = by_priority.get(ticket.priority, 0) + 1

    return GlobalStats(
        total_users=sum(1 for _ in users),
        total_tickets=total,
        resolved=by_status.get(TicketStatus.RESOLVED.value, 0),
        pending=by_status.get(TicketStatus.PENDING.value, 0),
        rejected=by_status.get(TicketStatus.REJECTED.value, 0),
        by_status=by_status,
        by_priority=by_priority,
    )


class LiveStats(Generic[S]):
    """
    Contadores recalculados a cada snapshot das projeções observadas.

    Não é dono das projeções: close() apenas para de observar.
    """

    def __init__(self, compute: Callable[[], S], handles: List[ProjectionHandle]):
        self._compute = compute
        self._handles = handles
        self._listeners: List[Callable[[S], None]] = []
        self._value = compute()
        self._unsubscribers = [handle.subscribe(self._on_state) for handle in handles]

    @property
    def value(self) -> S:
        return self._value

    @property
    def loading(self) -> bool:
        return any(handle.current().loading for handle in self._handles)

    @property
    def error(self) -> Optional[SubscriptionError]:
        for handle in self._handles:
            error = handle.current().error
            if error is not None:
                return error
        return None

    def subscribe(self, listener: Callable[[S], None]) -> None:
        self._listeners.append(listener)

    def close(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        self._listeners.clear()

    def _on_state(self, _state: ProjectionState) -> None:
        self._value = self._compute()
        for listener in list(self._listeners):
            listener(self._value)


class StatsAggregator:
    """
    Fábrica de estatísticas vivas.

    O modo global só é acessível através do AuthorizationGate.
    """

    def __init__(self, gate: AuthorizationGate):
        self.gate = gate

    def watch_scoped(self, handle: ProjectionHandle[Ticket]) -> LiveStats[ScopedStats]:
        return LiveStats(lambda: scoped_stats(handle.current().items), [handle])

    async def watch_global(
        self,
        identity: Optional[Identity],
        tickets_handle: ProjectionHandle[Ticket],
        users_handle: ProjectionHandle[UserProfile],
    ) -> LiveStats[GlobalStats]:
        """
        Estatísticas globais.

        Raises:
            AuthorizationError: Identidade não é admin
        """
        if identity is None or not await self.gate.is_privileged(identity.uid):
            logger.warning(f"Acesso negado às estatísticas globais: {identity.uid if identity else None}")
            raise AuthorizationError(
                "Estatísticas globais restritas a administradores",
                uid=identity.uid if identity else None,
            )

        return LiveStats(
            lambda: global_stats(
                tickets_handle.current().items,
                users_handle.current().items,
            ),
            [tickets_handle, users_handle],
        )
