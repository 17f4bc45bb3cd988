"""
Ports do Domínio de Usuários - Formas de consulta da coleção "users".
"""

from servicedesk.core.shared.interfaces import QueryShape


USERS_COLLECTION = "users"


class UserQueries:
    """Fábrica de formas de consulta de perfis."""

    @staticmethod
    def all_users() -> QueryShape:
        """Todos os perfis (visão privilegiada)."""
        return QueryShape(collection=USERS_COLLECTION)
