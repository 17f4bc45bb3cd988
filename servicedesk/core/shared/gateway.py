"""
Gateway de documentos em memória.

Implementação do CollectionGateway sem infraestrutura externa.

Útil para:
- Testes unitários (fault injection, log de escritas)
- Prototipagem
- Desenvolvimento local (GATEWAY_BACKEND=memory)

Entrega de eventos:
    Snapshots são enfileiradas e entregues por flush(). Com
    auto_flush=True (padrão) a entrega acontece logo após cada
    operação, como um push síncrono. Com auto_flush=False o teste
    controla quando o "servidor" responde.

Example:
    gateway = InMemoryCollectionGateway(auto_flush=False)
    sub = gateway.open_live_query(shape, on_data, on_error)
    gateway.flush()  # entrega a primeira snapshot
"""

from collections import deque
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Deque, Dict, List, Optional, Set, Tuple
import copy
import logging
import uuid

from .exceptions import EntityNotFoundError, PermissionDeniedError
from .interfaces import (
    OnData,
    OnError,
    QueryShape,
    RawDocument,
    SERVER_TIMESTAMP,
    Subscription,
    dispatch_delivery,
)

logger = logging.getLogger(__name__)


class InMemorySubscription(Subscription):
    """Subscription do gateway em memória."""

    def __init__(self, shape: QueryShape, on_data: OnData, on_error: OnError):
        self.shape = shape
        self._on_data = on_data
        self._on_error = on_error
        self._active = True
        self.delivered = 0

    def cancel(self) -> None:
        if self._active:
            self._active = False
            logger.debug(f"Subscription cancelada: {self.shape}")

    @property
    def active(self) -> bool:
        return self._active

    def _deliver(self, kind: str, payload: Any) -> None:
        if not self._active:
            return
        self.delivered += 1
        if kind == "data":
            self._on_data(payload)
        else:
            # Erro é terminal: o canal não entrega mais nada
            self._active = False
            self._on_error(payload)


class InMemoryCollectionGateway:
    """
    Implementação em memória do CollectionGateway.

    Não usar em produção!

    Attributes:
        write_log: Lista de (operação, coleção, doc_id, payload) de cada escrita
        read_log: Lista de (coleção, doc_id) de cada leitura direta
        fail_writes: Exceção a lançar em toda escrita (None = sucesso)
        fail_reads: Exceção a lançar em toda leitura direta
        denied_collections: Coleções cujas live queries/leituras são negadas
    """

    def __init__(
        self,
        auto_flush: bool = True,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._subscriptions: List[InMemorySubscription] = []
        self._pending: Deque[Tuple[InMemorySubscription, str, Any]] = deque()
        self._auto_flush = auto_flush
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._last_timestamp: Optional[datetime] = None

        self.write_log: List[Tuple[str, str, str, Dict[str, Any]]] = []
        self.read_log: List[Tuple[str, str]] = []
        self.fail_writes: Optional[Exception] = None
        self.fail_reads: Optional[Exception] = None
        self.denied_collections: Set[str] = set()

    # =========================================================================
    # Live queries
    # =========================================================================

    def open_live_query(
        self,
        shape: QueryShape,
        on_data: OnData,
        on_error: OnError,
    ) -> InMemorySubscription:
        """Abre canal vivo e enfileira a primeira snapshot."""
        subscription = InMemorySubscription(shape, on_data, on_error)
        self._subscriptions.append(subscription)

        if shape.collection in self.denied_collections:
            self._enqueue(
                subscription,
                "error",
                PermissionDeniedError(f"Missing or insufficient permissions: {shape.collection}"),
            )
        else:
            self._enqueue(subscription, "data", self._snapshot(shape))

        self._maybe_flush()
        return subscription

    def flush(self) -> int:
        """
        Entrega eventos pendentes na ordem em que foram emitidos.

        Returns:
            Número de eventos efetivamente entregues
        """
        delivered = 0
        while self._pending:
            subscription, kind, payload = self._pending.popleft()
            if subscription.active:
                dispatch_delivery(subscription._deliver, kind, payload)
                delivered += 1
        return delivered

    def fail_subscription(self, shape: Optional[QueryShape], error: Exception) -> None:
        """Emite erro terminal para canais ativos da forma (None = todos)."""
        for subscription in self.active_subscriptions:
            if shape is None or subscription.shape == shape:
                self._enqueue(subscription, "error", error)
        self._maybe_flush()

    @property
    def active_subscriptions(self) -> List[InMemorySubscription]:
        """Canais vivos no momento."""
        return [s for s in self._subscriptions if s.active]

    # =========================================================================
    # Leitura e escrita
    # =========================================================================

    def get_document(self, collection: str, doc_id: str) -> Optional[RawDocument]:
        """Busca documento por ID."""
        self.read_log.append((collection, doc_id))
        if self.fail_reads is not None:
            raise self.fail_reads
        if collection in self.denied_collections:
            raise PermissionDeniedError(f"Missing or insufficient permissions: {collection}")

        data = self._collections.get(collection, {}).get(doc_id)
        if data is None:
            return None
        return self._as_raw(doc_id, data)

    def write_document(self, collection: str, doc_id: str, patch: Dict[str, Any]) -> None:
        """Merge-write no documento (cria se ausente)."""
        self._check_write("write", collection, doc_id, patch)
        documents = self._collections.setdefault(collection, {})
        current = documents.setdefault(doc_id, {})
        current.update(self._resolve_timestamps(patch))
        self._notify(collection)

    def update_document(self, collection: str, doc_id: str, patch: Dict[str, Any]) -> None:
        """Merge-write apenas em documento existente."""
        self._check_write("update", collection, doc_id, patch)
        current = self._collections.get(collection, {}).get(doc_id)
        if current is None:
            raise EntityNotFoundError(
                f"{collection}/{doc_id} não existe",
                entity_type=collection,
                entity_id=doc_id,
            )
        current.update(self._resolve_timestamps(patch))
        self._notify(collection)

    def create_document(self, collection: str, data: Dict[str, Any]) -> str:
        """Cria documento com ID gerado."""
        doc_id = uuid.uuid4().hex
        self._check_write("create", collection, doc_id, data)
        self._collections.setdefault(collection, {})[doc_id] = self._resolve_timestamps(data)
        self._notify(collection)
        return doc_id

    def delete_document(self, collection: str, doc_id: str) -> None:
        """Remove documento (no-op se ausente)."""
        self._check_write("delete", collection, doc_id, {})
        documents = self._collections.get(collection, {})
        if doc_id in documents:
            del documents[doc_id]
            self._notify(collection)

    def seed(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        """Insere documento sem registrar escrita (setup de testes)."""
        self._collections.setdefault(collection, {})[doc_id] = self._resolve_timestamps(data)
        self._notify(collection)

    def count(self, collection: str) -> int:
        """Conta documentos de uma coleção."""
        return len(self._collections.get(collection, {}))

    # =========================================================================
    # Internos
    # =========================================================================

    def _check_write(self, operation: str, collection: str, doc_id: str, payload: Dict[str, Any]) -> None:
        self.write_log.append((operation, collection, doc_id, dict(payload)))
        if self.fail_writes is not None:
            raise self.fail_writes
        if collection in self.denied_collections:
            raise PermissionDeniedError(f"Missing or insufficient permissions: {collection}")

    def _server_now(self) -> datetime:
        # Timestamps do servidor são estritamente crescentes
        now = self._clock()
        if self._last_timestamp is not None and now <= self._last_timestamp:
            now = self._last_timestamp + timedelta(microseconds=1)
        self._last_timestamp = now
        return now

    def _resolve_timestamps(self, data: Dict[str, Any]) -> Dict[str, Any]:
        resolved = {}
        for key, value in data.items():
            resolved[key] = self._server_now() if value is SERVER_TIMESTAMP else copy.deepcopy(value)
        return resolved

    def _snapshot(self, shape: QueryShape) -> List[RawDocument]:
        documents = [
            self._as_raw(doc_id, data)
            for doc_id, data in self._collections.get(shape.collection, {}).items()
        ]
        documents = [d for d in documents if shape.matches(d)]

        if shape.order_by is not None:
            field_name, direction = shape.order_by
            present = [d for d in documents if d.get(field_name) is not None]
            missing = [d for d in documents if d.get(field_name) is None]
            present.sort(key=lambda d: d[field_name], reverse=direction == "desc")
            documents = present + missing

        return documents

    def _as_raw(self, doc_id: str, data: Dict[str, Any]) -> RawDocument:
        raw = copy.deepcopy(data)
        raw["id"] = doc_id
        return raw

    def _notify(self, collection: str) -> None:
        for subscription in self.active_subscriptions:
            if subscription.shape.collection == collection:
                self._enqueue(subscription, "data", self._snapshot(subscription.shape))
        self._maybe_flush()

    def _enqueue(self, subscription: InMemorySubscription, kind: str, payload: Any) -> None:
        self._pending.append((subscription, kind, payload))

    def _maybe_flush(self) -> None:
        if self._auto_flush:
            self.flush()
