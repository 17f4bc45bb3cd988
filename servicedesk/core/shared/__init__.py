"""
Shared Domain Components.

Contém componentes compartilhados entre todos os domínios:
- Exceções de domínio
- Interfaces (Ports) e o gateway em memória
- Base classes para Domain Events
- Snapshot Projection
"""

from .exceptions import (
    DomainException,
    ValidationError,
    EntityNotFoundError,
    BusinessRuleViolationError,
    AuthorizationError,
    WriteError,
    SubscriptionError,
    GatewayError,
    PermissionDeniedError,
)
from .events import DomainEvent
from .interfaces import (
    CollectionGateway,
    EventPublisher,
    QueryShape,
    SERVER_TIMESTAMP,
    Subscription,
    UnitOfWork,
)
from .gateway import InMemoryCollectionGateway
from .projection import ProjectionHandle, ProjectionState, SnapshotProjection

__all__ = [
    # Exceptions
    "DomainException",
    "ValidationError",
    "EntityNotFoundError",
    "BusinessRuleViolationError",
    "AuthorizationError",
    "WriteError",
    "SubscriptionError",
    "GatewayError",
    "PermissionDeniedError",
    # Events
    "DomainEvent",
    # Ports
    "CollectionGateway",
    "EventPublisher",
    "QueryShape",
    "SERVER_TIMESTAMP",
    "Subscription",
    "UnitOfWork",
    # Implementations
    "InMemoryCollectionGateway",
    "ProjectionHandle",
    "ProjectionState",
    "SnapshotProjection",
]
