"""
Ports do Domínio de Tickets - Formas de consulta.

O domínio não fala SQL nem conhece o data store: descreve as
consultas como QueryShape e o gateway injetado as executa.

Formas disponíveis:
- for_user: tickets de um usuário (dashboard / "meus tickets")
- all_tickets: todos os tickets, opcionalmente por status (admin)
- all_users: todos os perfis (admin)
"""

from typing import Optional

from servicedesk.core.shared.filters import is_unconstrained
from servicedesk.core.shared.interfaces import QueryShape
from servicedesk.core.users.ports import UserQueries


TICKETS_COLLECTION = "tickets"


class TicketQueries:
    """Fábrica de formas de consulta."""

    @staticmethod
    def for_user(
        uid: str,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        order: str = "desc",
    ) -> QueryShape:
        """
        Tickets de um usuário, mais recentes primeiro por padrão.

        Status e prioridade viram predicados no servidor quando
        informados; "all" e vazio são ignorados.
        """
        if not uid:
            raise ValueError("uid é obrigatório")

        where = (("userId", uid),)
        if not is_unconstrained(status):
            where += (("status", status),)
        if not is_unconstrained(priority):
            where += (("priority", priority),)

        return QueryShape(
            collection=TICKETS_COLLECTION,
            where=where,
            order_by=("createdAt", order),
        )

    @staticmethod
    def all_tickets(status: Optional[str] = None) -> QueryShape:
        """Todos os tickets (visão privilegiada)."""
        where = () if is_unconstrained(status) else (("status", status),)
        return QueryShape(
            collection=TICKETS_COLLECTION,
            where=where,
            order_by=("createdAt", "desc"),
        )

    @staticmethod
    def all_users() -> QueryShape:
        """Todos os perfis de usuário (visão privilegiada)."""
        return UserQueries.all_users()
