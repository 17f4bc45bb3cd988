"""
Authorization Gate - Resolução do papel privilegiado.

Regras de resolução:
- Perfil com role == "admin"          → True
- Perfil ausente ou outro papel       → False
- Falha ao buscar o perfil            → False (fail closed, não cacheado)

Cache:
- Resultado cacheado por uid durante a sessão
- Consumidores concorrentes do mesmo uid compartilham uma única busca
- Invalidado apenas por um novo login (uid diferente) ou fim de sessão
- Mudança de papel no meio da sessão NÃO invalida o cache

Route guard:
- Enquanto não resolvido: LOADING (nunca permite por padrão)
"""

from enum import Enum
from typing import Dict, Optional
import asyncio
import logging

from servicedesk.core.shared.exceptions import GatewayError
from servicedesk.core.shared.interfaces import CollectionGateway, run_blocking

from .entities import Identity, UserRole
from .ports import USERS_COLLECTION

logger = logging.getLogger(__name__)


class AuthorizationGate:
    """
    Gate de autorização com cache por sessão.

    Compartilhado por todos os consumidores da sessão (route guard,
    barra de navegação, dashboard administrativo) para que concordem
    sem refazer a busca.

    Example:
        gate = AuthorizationGate(gateway)
        gate.begin_session(identity)
        if await gate.is_privileged(identity.uid):
            ...
    """

    def __init__(self, gateway: CollectionGateway):
        self._gateway = gateway
        self._cache: Dict[str, bool] = {}
        self._inflight: Dict[str, "asyncio.Task[bool]"] = {}
        self._session_uid: Optional[str] = None
        self._generation = 0

    async def is_privileged(self, uid: str) -> bool:
        """
        Resolve se o uid possui papel administrativo.

        Chamadas concorrentes para o mesmo uid aguardam a mesma busca.
        """
        if not uid:
            return False

        if uid in self._cache:
            return self._cache[uid]

        task = self._inflight.get(uid)
        if task is None:
            task = asyncio.ensure_future(self._resolve(uid, self._generation))
            self._inflight[uid] = task
            task.add_done_callback(lambda _done, key=uid: self._forget_inflight(key, _done))

        return await asyncio.shield(task)

    def cached(self, uid: Optional[str]) -> Optional[bool]:
        """Resultado em cache (None se ainda não resolvido). Não bloqueia."""
        if not uid:
            return None
        return self._cache.get(uid)

    def begin_session(self, identity: Optional[Identity]) -> None:
        """
        Registra a identidade da sessão atual.

        Um uid diferente do anterior é um novo login: o cache é limpo.
        """
        if identity is None:
            self.end_session()
            return

        if identity.uid != self._session_uid:
            logger.debug(f"Nova sessão para {identity.uid}: cache de autorização limpo")
            self._reset()
            self._session_uid = identity.uid

    def end_session(self) -> None:
        """Logout: limpa cache e buscas em andamento."""
        self._reset()
        self._session_uid = None

    @property
    def session_uid(self) -> Optional[str]:
        return self._session_uid

    # =========================================================================
    # Internos
    # =========================================================================

    def _reset(self) -> None:
        self._cache.clear()
        self._inflight.clear()
        self._generation += 1

    def _forget_inflight(self, uid: str, task: "asyncio.Task[bool]") -> None:
        if self._inflight.get(uid) is task:
            del self._inflight[uid]

    async def _resolve(self, uid: str, generation: int) -> bool:
        try:
            document = await run_blocking(
                self._gateway.get_document, USERS_COLLECTION, uid
            )
        except GatewayError as e:
            logger.warning(f"Falha ao resolver papel de {uid}: {e}")
            return False

        privileged = document is not None and document.get("role") == UserRole.ADMIN.value

        # Sessão mudou durante a busca: resultado não vale para a nova sessão
        if generation == self._generation:
            self._cache[uid] = privileged

        logger.debug(f"Papel resolvido para {uid}: admin={privileged}")
        return privileged


class GuardDecision(str, Enum):
    """Decisão do route guard."""

    LOADING = "loading"
    ALLOW = "allow"
    DENY = "deny"


class AdminRouteGuard:
    """
    Guard de rotas administrativas.

    Nunca permite por padrão: enquanto o gate não resolveu,
    a decisão é LOADING.
    """

    def __init__(self, gate: AuthorizationGate):
        self.gate = gate

    def decision(self, identity: Optional[Identity]) -> GuardDecision:
        """Decisão imediata, a partir do cache do gate."""
        if identity is None:
            return GuardDecision.DENY

        cached = self.gate.cached(identity.uid)
        if cached is None:
            return GuardDecision.LOADING
        return GuardDecision.ALLOW if cached else GuardDecision.DENY

    async def resolve(self, identity: Optional[Identity]) -> GuardDecision:
        """Aguarda a resolução do gate e retorna a decisão final."""
        if identity is None:
            return GuardDecision.DENY

        privileged = await self.gate.is_privileged(identity.uid)
        return GuardDecision.ALLOW if privileged else GuardDecision.DENY
