"""
Dependency Injection Container.

Configura e gerencia todas as dependências da aplicação.
Usa dependency-injector para lazy-loading e injeção explícita.

Padrões:
- Singleton: Uma instância por processo (gateway, publisher, gate)
- Factory: Nova instância por chamada (UoW, controllers, services, projeções)
- Selector: Implementação do gateway escolhida por configuração

O AuthorizationGate é Singleton para que route guard, navegação e
dashboards da mesma sessão compartilhem o cache de papéis.
"""

from typing import Optional

from dependency_injector import containers, providers

from servicedesk.core.shared.gateway import InMemoryCollectionGateway
from servicedesk.core.shared.projection import SnapshotProjection
from servicedesk.core.tickets.mappers import TicketMapper
from servicedesk.core.tickets.stats import StatsAggregator
from servicedesk.core.tickets.use_cases import CreateTicketService, GetTicketService
from servicedesk.core.tickets.workflow import TicketWorkflowController
from servicedesk.core.users.authorization import AdminRouteGuard, AuthorizationGate
from servicedesk.core.users.mappers import UserProfileMapper
from servicedesk.core.users.use_cases import ProfileService, UserAdministrationService


def _django_gateway():
    # Import tardio: exige apps Django carregados
    from servicedesk.adapters.django_app.documents.gateway import DjangoCollectionGateway
    return DjangoCollectionGateway()


def _event_publisher(mode: str):
    from servicedesk.adapters.django_app.events.publishers import get_event_publisher
    return get_event_publisher(mode)


def _django_unit_of_work(event_publisher):
    from servicedesk.adapters.django_app.shared.unit_of_work import DjangoUnitOfWork
    return DjangoUnitOfWork(event_publisher=event_publisher)


def _in_memory_unit_of_work():
    from servicedesk.adapters.django_app.shared.unit_of_work import InMemoryUnitOfWork
    return InMemoryUnitOfWork()


class Container(containers.DeclarativeContainer):
    """
    Container principal de Dependency Injection.

    Organização:
    - Configuration: gateway_backend, event_publisher_mode
    - Infrastructure: Gateway, Event Publisher, Unit of Work
    - Authorization: Gate (sessão) e route guard
    - Services: Workflow, use cases, projeções, estatísticas

    Example:
        container = get_container()
        controller = container.workflow_controller()
        controller.change_status(ticket, "resolved")
    """

    # =========================================================================
    # Configuration
    # =========================================================================

    config = providers.Configuration()

    # =========================================================================
    # Infrastructure
    # =========================================================================

    gateway = providers.Selector(
        config.gateway_backend,
        django=providers.Singleton(_django_gateway),
        memory=providers.Singleton(InMemoryCollectionGateway),
    )

    event_publisher = providers.Singleton(
        _event_publisher,
        mode=config.event_publisher_mode,
    )

    unit_of_work = providers.Factory(
        _django_unit_of_work,
        event_publisher=event_publisher,
    )

    # =========================================================================
    # Authorization
    # =========================================================================

    authorization_gate = providers.Singleton(AuthorizationGate, gateway=gateway)

    admin_route_guard = providers.Factory(AdminRouteGuard, gate=authorization_gate)

    # =========================================================================
    # Services / Use Cases
    # =========================================================================

    workflow_controller = providers.Factory(
        TicketWorkflowController,
        gateway=gateway,
        uow=unit_of_work,
    )

    create_ticket_service = providers.Factory(
        CreateTicketService,
        gateway=gateway,
        uow=unit_of_work,
    )

    get_ticket_service = providers.Factory(GetTicketService, gateway=gateway)

    profile_service = providers.Factory(ProfileService, gateway=gateway)

    user_administration_service = providers.Factory(
        UserAdministrationService,
        gateway=gateway,
        uow=unit_of_work,
        gate=authorization_gate,
    )

    stats_aggregator = providers.Factory(StatsAggregator, gate=authorization_gate)

    # =========================================================================
    # Projections (uma por view consumidora)
    # =========================================================================

    ticket_projection = providers.Factory(
        SnapshotProjection,
        gateway=gateway,
        mapper=providers.Object(TicketMapper.to_entity),
    )

    user_projection = providers.Factory(
        SnapshotProjection,
        gateway=gateway,
        mapper=providers.Object(UserProfileMapper.to_entity),
    )


# =============================================================================
# Container Global (Singleton)
# =============================================================================

_container: Optional[Container] = None


def get_container() -> Container:
    """
    Retorna instância global do container.

    Cria se não existir, lendo GATEWAY_BACKEND e EVENT_PUBLISHER_MODE
    do ambiente.
    """
    global _container

    if _container is None:
        _container = Container()
        _container.config.gateway_backend.from_env("GATEWAY_BACKEND", default="django")
        _container.config.event_publisher_mode.from_env("EVENT_PUBLISHER_MODE", default="sync")

    return _container


def reset_container() -> None:
    """Reset do container (para testes)."""
    global _container
    _container = None


# =============================================================================
# Testing Container
# =============================================================================

def create_testing_container() -> Container:
    """
    Container para testes: gateway em memória e UoW em memória.

    Example:
        container = create_testing_container()
        gateway = container.gateway()
        gateway.seed("tickets", "t-1", {...})
    """
    container = Container()
    container.config.from_dict({
        "gateway_backend": "memory",
        "event_publisher_mode": "sync",
    })
    container.gateway.override(providers.Singleton(InMemoryCollectionGateway))
    container.unit_of_work.override(providers.Factory(_in_memory_unit_of_work))
    return container
