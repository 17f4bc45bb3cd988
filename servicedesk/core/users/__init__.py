"""
Domínio de Usuários.

- Entidades (Identity, UserProfile, UserRole)
- Authorization Gate e route guard administrativo
- Use Cases de perfil e administração
- Filtro do diretório de usuários
"""

from .authorization import AdminRouteGuard, AuthorizationGate, GuardDecision
from .entities import Identity, UserProfile, UserRole
from .events import UserDeletedEvent, UserRoleChangedEvent
from .mappers import UserProfileMapper
from .pipeline import UserFilterCriteria, distinct_values, filter_users
from .ports import USERS_COLLECTION, UserQueries
from .use_cases import ProfileService, UserAdministrationService

__all__ = [
    "AdminRouteGuard",
    "AuthorizationGate",
    "GuardDecision",
    "Identity",
    "UserProfile",
    "UserRole",
    "UserDeletedEvent",
    "UserRoleChangedEvent",
    "UserProfileMapper",
    "UserFilterCriteria",
    "distinct_values",
    "filter_users",
    "USERS_COLLECTION",
    "UserQueries",
    "ProfileService",
    "UserAdministrationService",
]
