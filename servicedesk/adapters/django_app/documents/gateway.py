"""
DjangoCollectionGateway - CollectionGateway sobre o Django ORM.

Armazenamento:
    Todas as coleções vivem em DocumentModel; predicados de igualdade
    viram lookups de chave JSON (data__userId=...), e ordenação por
    createdAt/updatedAt usa as colunas indexadas.

Live queries:
    Os signals post_save/post_delete de DocumentModel reexecutam
    cada live query ativa da coleção alterada e entregam a snapshot
    completa após o commit da transação (transaction.on_commit).
    A primeira snapshot é entregue dentro de open_live_query.
    Quando a escrita roda em thread auxiliar via run_blocking, a
    snapshot é consultada nessa thread e entregue no loop de origem.

Erros:
    DatabaseError é convertido em GatewayError.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
import logging
import threading
import uuid
import weakref

from django.db import DatabaseError, transaction
from django.db.models import F
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver
from django.utils import timezone

from servicedesk.core.shared.exceptions import EntityNotFoundError, GatewayError
from servicedesk.core.shared.interfaces import (
    OnData,
    OnError,
    QueryShape,
    RawDocument,
    SERVER_TIMESTAMP,
    Subscription,
    dispatch_delivery,
)

from .models import DocumentModel

logger = logging.getLogger(__name__)

# Campos de documento espelhados em colunas indexadas
TIMESTAMP_COLUMNS = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}

# Gateways com live queries abertas (alimentados pelos signals)
_live_gateways: "weakref.WeakSet[DjangoCollectionGateway]" = weakref.WeakSet()


class DjangoSubscription(Subscription):
    """Canal vivo do gateway Django."""

    def __init__(self, shape: QueryShape, on_data: OnData, on_error: OnError):
        self.shape = shape
        self._on_data = on_data
        self._on_error = on_error
        self._active = True

    def cancel(self) -> None:
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def deliver(self, documents: List[RawDocument]) -> None:
        if self._active:
            self._on_data(documents)

    def fail(self, error: Exception) -> None:
        if self._active:
            self._active = False
            self._on_error(error)


class DjangoCollectionGateway:
    """
    Implementação Django do CollectionGateway.

    Example:
        gateway = DjangoCollectionGateway()
        doc_id = gateway.create_document("tickets", {"title": "..."})
        gateway.update_document("tickets", doc_id, {"status": "resolved"})
    """

    def __init__(self):
        # Signals podem chegar de threads auxiliares (run_blocking)
        self._lock = threading.Lock()
        self._subscriptions: List[DjangoSubscription] = []

    # =========================================================================
    # Live queries
    # =========================================================================

    def open_live_query(
        self,
        shape: QueryShape,
        on_data: OnData,
        on_error: OnError,
    ) -> DjangoSubscription:
        subscription = DjangoSubscription(shape, on_data, on_error)
        with self._lock:
            self._subscriptions.append(subscription)
        _live_gateways.add(self)
        self._push(subscription)
        return subscription

    @property
    def active_subscriptions(self) -> List[DjangoSubscription]:
        with self._lock:
            return [s for s in self._subscriptions if s.active]

    def collection_changed(self, collection: str) -> None:
        """Reexecuta as live queries da coleção após o commit corrente."""
        with self._lock:
            self._subscriptions[:] = [s for s in self._subscriptions if s.active]
            watched = any(s.shape.collection == collection for s in self._subscriptions)
        if watched:
            transaction.on_commit(lambda: self._push_collection(collection))

    def _push_collection(self, collection: str) -> None:
        for subscription in self.active_subscriptions:
            if subscription.shape.collection == collection:
                self._push(subscription)

    def _push(self, subscription: DjangoSubscription) -> None:
        try:
            documents = self.run_query(subscription.shape)
        except GatewayError as e:
            logger.warning(f"Live query falhou ({subscription.shape}): {e}")
            dispatch_delivery(subscription.fail, e)
            return
        dispatch_delivery(subscription.deliver, documents)

    def run_query(self, shape: QueryShape) -> List[RawDocument]:
        """
        Executa a forma de consulta e retorna a snapshot ordenada.

        Raises:
            GatewayError: Falha no banco
        """
        queryset = DocumentModel.objects.filter(collection=shape.collection)
        for field_name, value in shape.where:
            queryset = queryset.filter(**{f"data__{field_name}": value})

        try:
            if shape.order_by is None:
                return [self._as_raw(m) for m in queryset.order_by("pk")]

            field_name, direction = shape.order_by
            column = TIMESTAMP_COLUMNS.get(field_name)
            if column is not None:
                expression = F(column).desc(nulls_last=True) if direction == "desc" else F(column).asc(nulls_last=True)
                return [self._as_raw(m) for m in queryset.order_by(expression, "pk")]

            documents = [self._as_raw(m) for m in queryset.order_by("pk")]
        except DatabaseError as e:
            raise GatewayError(f"Falha ao consultar '{shape.collection}': {e}") from e

        return _sort_documents(documents, field_name, direction)

    # =========================================================================
    # Leitura e escrita
    # =========================================================================

    def get_document(self, collection: str, doc_id: str) -> Optional[RawDocument]:
        try:
            model = DocumentModel.objects.filter(collection=collection, doc_id=doc_id).first()
        except DatabaseError as e:
            raise GatewayError(f"Falha ao ler {collection}/{doc_id}: {e}") from e
        return self._as_raw(model) if model is not None else None

    def write_document(self, collection: str, doc_id: str, patch: Dict[str, Any]) -> None:
        """Merge-write (cria o documento se ausente)."""
        try:
            with transaction.atomic():
                model, _ = DocumentModel.objects.select_for_update().get_or_create(
                    collection=collection,
                    doc_id=doc_id,
                )
                model.data = {**model.data, **_resolve_timestamps(patch)}
                _mirror_timestamps(model)
                model.save()
        except DatabaseError as e:
            raise GatewayError(f"Falha ao gravar {collection}/{doc_id}: {e}") from e

    def update_document(self, collection: str, doc_id: str, patch: Dict[str, Any]) -> None:
        """Merge-write apenas em documento existente."""
        try:
            with transaction.atomic():
                model = DocumentModel.objects.select_for_update().filter(
                    collection=collection,
                    doc_id=doc_id,
                ).first()
                if model is None:
                    raise EntityNotFoundError(
                        f"{collection}/{doc_id} não existe",
                        entity_type=collection,
                        entity_id=doc_id,
                    )
                model.data = {**model.data, **_resolve_timestamps(patch)}
                _mirror_timestamps(model)
                model.save()
        except DatabaseError as e:
            raise GatewayError(f"Falha ao atualizar {collection}/{doc_id}: {e}") from e

    def create_document(self, collection: str, data: Dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        model = DocumentModel(
            collection=collection,
            doc_id=doc_id,
            data=_resolve_timestamps(data),
        )
        _mirror_timestamps(model)
        try:
            model.save()
        except DatabaseError as e:
            raise GatewayError(f"Falha ao criar documento em '{collection}': {e}") from e
        return doc_id

    def delete_document(self, collection: str, doc_id: str) -> None:
        try:
            model = DocumentModel.objects.filter(collection=collection, doc_id=doc_id).first()
            if model is not None:
                model.delete()
        except DatabaseError as e:
            raise GatewayError(f"Falha ao remover {collection}/{doc_id}: {e}") from e

    @staticmethod
    def _as_raw(model: DocumentModel) -> RawDocument:
        raw = dict(model.data)
        raw["id"] = model.doc_id
        return raw


def _resolve_timestamps(data: Dict[str, Any]) -> Dict[str, Any]:
    now = timezone.now()
    return {key: now if value is SERVER_TIMESTAMP else value for key, value in data.items()}


def _mirror_timestamps(model: DocumentModel) -> None:
    for field_name, column in TIMESTAMP_COLUMNS.items():
        value = model.data.get(field_name)
        # Valores já gravados voltam do JSON como string; a coluna mantém o original
        if isinstance(value, datetime):
            setattr(model, column, value)


def _sort_documents(documents: List[RawDocument], field_name: str, direction: str) -> List[RawDocument]:
    present: List[Tuple[Any, RawDocument]] = [
        (d[field_name], d) for d in documents if d.get(field_name) is not None
    ]
    missing = [d for d in documents if d.get(field_name) is None]
    present.sort(key=lambda pair: pair[0], reverse=direction == "desc")
    return [d for _, d in present] + missing


# =============================================================================
# Signals
# =============================================================================

@receiver(post_save, sender=DocumentModel, dispatch_uid="servicedesk_documents_saved")
def _document_saved(sender, instance: DocumentModel, **kwargs) -> None:
    for gateway in list(_live_gateways):
        gateway.collection_changed(instance.collection)


@receiver(post_delete, sender=DocumentModel, dispatch_uid="servicedesk_documents_deleted")
def _document_deleted(sender, instance: DocumentModel, **kwargs) -> None:
    for gateway in list(_live_gateways):
        gateway.collection_changed(instance.collection)
