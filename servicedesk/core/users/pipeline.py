"""
Filtro do diretório de usuários (lista administrativa).

Mesmas convenções do pipeline de tickets: busca case-insensitive
em nome e e-mail, filtros de igualdade ignorados quando vazios
ou "all". A ordem da snapshot é preservada.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from servicedesk.core.shared.filters import is_unconstrained

from .entities import UserProfile


@dataclass(frozen=True)
class UserFilterCriteria:
    """Critérios da lista de usuários."""

    search: Optional[str] = None
    role: Optional[str] = None
    department: Optional[str] = None
    location: Optional[str] = None


def matches_user(profile: UserProfile, criteria: UserFilterCriteria) -> bool:
    term = (criteria.search or "").strip().lower()
    if term and term not in profile.name.lower() and term not in profile.email.lower():
        return False

    # Perfil sem role conta como "user"
    if not is_unconstrained(criteria.role) and profile.effective_role != criteria.role:
        return False
    if not is_unconstrained(criteria.department) and profile.department != criteria.department:
        return False
    if not is_unconstrained(criteria.location) and profile.location != criteria.location:
        return False

    return True


def filter_users(
    profiles: Iterable[UserProfile],
    criteria: Optional[UserFilterCriteria] = None,
) -> List[UserProfile]:
    """Filtra perfis mantendo a ordem de entrada."""
    criteria = criteria or UserFilterCriteria()
    return [p for p in profiles if matches_user(p, criteria)]


def distinct_values(profiles: Iterable[UserProfile], field_name: str) -> List[str]:
    """
    Valores distintos e não vazios de um campo, na ordem de aparição.

    Usado para montar as opções dos seletores de departamento e local.
    """
    seen: List[str] = []
    for profile in profiles:
        value = getattr(profile, field_name)
        if value and value not in seen:
            seen.append(value)
    return seen
