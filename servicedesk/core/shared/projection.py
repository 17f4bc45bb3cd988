"""
Snapshot Projection - Lista local sempre atualizada de uma live query.

Cada consumidor (view) possui uma SnapshotProjection. A projeção
mantém no máximo um ProjectionHandle ativo, e cada handle possui
exatamente uma Subscription no gateway.

Regras:
- Cada snapshot SUBSTITUI a lista inteira (sem merge incremental)
- loading=True até a primeira snapshot
- Erro é terminal para o handle: items congelados, sem retry
- Mudar a forma da consulta cancela o canal anterior ANTES de abrir o novo
- Callbacks atrasados (após close ou erro) são ignorados

Example:
    projection = SnapshotProjection(gateway, TicketMapper.to_entity)
    with projection.open(TicketQueries.for_user(uid)) as handle:
        state = handle.current()
        if state.error:
            ...
"""

from dataclasses import dataclass, field
from typing import Callable, Generic, List, Optional, TypeVar
import logging

from .exceptions import SubscriptionError
from .interfaces import (
    CollectionGateway,
    QueryShape,
    RawDocument,
    Subscription,
    as_subscription_error,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

Listener = Callable[["ProjectionState"], None]


@dataclass(frozen=True)
class ProjectionState(Generic[T]):
    """Estado observável de um handle."""

    items: List[T] = field(default_factory=list)
    loading: bool = True
    error: Optional[SubscriptionError] = None


class ProjectionHandle(Generic[T]):
    """
    Handle de uma live query materializada.

    Não instanciar diretamente; usar SnapshotProjection.open().
    """

    def __init__(self, shape: QueryShape, mapper: Callable[[RawDocument], T]):
        self.shape = shape
        self._mapper = mapper
        self._items: List[T] = []
        self._loading = True
        self._error: Optional[SubscriptionError] = None
        self._closed = False
        self._subscription: Optional[Subscription] = None
        self._listeners: List[Listener] = []

    def _attach(self, gateway: CollectionGateway) -> None:
        subscription = gateway.open_live_query(self.shape, self._on_data, self._on_error)
        if self._closed or self._error is not None:
            # Falhou ou foi fechado durante a entrega síncrona
            subscription.cancel()
        self._subscription = subscription

    # =========================================================================
    # API pública
    # =========================================================================

    def current(self) -> ProjectionState[T]:
        """Retorna cópia do estado atual."""
        return ProjectionState(
            items=list(self._items),
            loading=self._loading,
            error=self._error,
        )

    def close(self) -> None:
        """Cancela a subscription. Idempotente."""
        if self._closed:
            return
        self._closed = True
        self._listeners.clear()
        if self._subscription is not None:
            self._subscription.cancel()
        logger.debug(f"Projeção fechada: {self.shape}")

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def active(self) -> bool:
        """True enquanto o handle pode receber snapshots."""
        return not self._closed and self._error is None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Registra listener chamado com o novo estado a cada snapshot ou erro.

        Returns:
            Função que remove o listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def __enter__(self) -> "ProjectionHandle[T]":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False

    # =========================================================================
    # Callbacks do gateway
    # =========================================================================

    def _on_data(self, documents: List[RawDocument]) -> None:
        if not self.active:
            return

        try:
            items = [self._mapper(document) for document in documents]
        except Exception as e:
            # Qualquer documento malformado encerra a projeção, nunca o escritor
            logger.warning(f"Falha ao mapear snapshot de {self.shape}: {e!r}")
            self._fail(SubscriptionError(
                f"Documento inválido em '{self.shape.collection}': {e}",
                query=self.shape,
            ))
            return

        self._items = items
        self._loading = False
        self._notify()

    def _on_error(self, error: Exception) -> None:
        if not self.active:
            return
        self._fail(as_subscription_error(error, self.shape))

    def _fail(self, error: SubscriptionError) -> None:
        logger.warning(f"Live query falhou: {error}")
        self._error = error
        self._loading = False
        if self._subscription is not None:
            self._subscription.cancel()
        self._notify()

    def _notify(self) -> None:
        state = self.current()
        for listener in list(self._listeners):
            listener(state)


class SnapshotProjection(Generic[T]):
    """
    Dono de no máximo um ProjectionHandle ativo.

    Args:
        gateway: Gateway de documentos (injetado)
        mapper: Converte documento cru em entidade de domínio
    """

    def __init__(self, gateway: CollectionGateway, mapper: Callable[[RawDocument], T]):
        self._gateway = gateway
        self._mapper = mapper
        self._handle: Optional[ProjectionHandle[T]] = None

    def open(self, shape: QueryShape) -> ProjectionHandle[T]:
        """
        Abre (ou reutiliza) o handle para a forma de consulta.

        Mesma forma com handle ativo: retorna o mesmo handle.
        Forma diferente: fecha o handle anterior antes de abrir o novo.
        """
        if self._handle is not None:
            if self._handle.shape == shape and self._handle.active:
                return self._handle
            self._handle.close()
            self._handle = None

        handle = ProjectionHandle(shape, self._mapper)
        self._handle = handle
        logger.debug(f"Abrindo projeção: {shape}")
        handle._attach(self._gateway)
        return handle

    @property
    def handle(self) -> Optional[ProjectionHandle[T]]:
        return self._handle

    def close(self) -> None:
        """Fecha o handle ativo, se houver."""
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def __enter__(self) -> "SnapshotProjection[T]":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False
