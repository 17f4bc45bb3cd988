"""
Interfaces (Ports) - Contratos entre Core e Adapters.

Este módulo define as interfaces que os Adapters devem implementar.
São os "Ports" da Arquitetura Hexagonal.

Tipos de Ports:
- Driven Ports: CollectionGateway, Subscription, UnitOfWork, EventPublisher
- Driving Ports: Definidos nos controllers e use cases

Princípio: Core define interfaces; Adapters implementam.
O gateway é sempre injetado no construtor dos componentes (nunca um
singleton de módulo), para que testes possam substituí-lo por um fake.
"""

from abc import ABC, abstractmethod
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple, runtime_checkable
import asyncio

from .events import DomainEvent
from .exceptions import SubscriptionError


# Documento cru como entregue pelo gateway (inclui a chave "id")
RawDocument = Dict[str, Any]

OnData = Callable[[List[RawDocument]], None]
OnError = Callable[[Exception], None]

# Loop que recebe as snapshots quando a escrita roda em thread auxiliar
DELIVERY_LOOP: ContextVar[Optional[asyncio.AbstractEventLoop]] = ContextVar("delivery_loop", default=None)


class _ServerTimestamp:
    """Sentinela substituída pelo relógio do gateway no momento da escrita."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


@dataclass(frozen=True)
class QueryShape:
    """
    Forma de uma live query.

    Duas formas representam a mesma consulta se e somente se são
    iguais; a projeção usa isso para decidir se precisa reassinar.

    Attributes:
        collection: Nome da coleção (ex: "tickets", "users")
        where: Predicados de igualdade ((campo, valor), ...)
        order_by: (campo, "asc"|"desc") ou None

    Example:
        QueryShape(
            collection="tickets",
            where=(("userId", "u-1"),),
            order_by=("createdAt", "desc"),
        )
    """

    collection: str
    where: Tuple[Tuple[str, Any], ...] = ()
    order_by: Optional[Tuple[str, str]] = None

    def __post_init__(self):
        if self.order_by is not None and self.order_by[1] not in ("asc", "desc"):
            raise ValueError(f"Direção de ordenação inválida: {self.order_by[1]}")

    def where_equal(self, field_name: str, value: Any) -> "QueryShape":
        """Retorna nova forma com um predicado de igualdade adicional."""
        return QueryShape(
            collection=self.collection,
            where=self.where + ((field_name, value),),
            order_by=self.order_by,
        )

    def matches(self, document: RawDocument) -> bool:
        """Verifica se um documento satisfaz todos os predicados."""
        return all(document.get(name) == value for name, value in self.where)


class Subscription(ABC):
    """
    Canal vivo para uma única forma de consulta.

    Pertence exclusivamente ao componente que o abriu. Depois de
    cancel() o gateway não entrega mais eventos.
    """

    @abstractmethod
    def cancel(self) -> None:
        """Cancela o canal. Chamadas repetidas são no-op."""
        raise NotImplementedError

    @property
    @abstractmethod
    def active(self) -> bool:
        """True enquanto o canal pode entregar eventos."""
        raise NotImplementedError


@runtime_checkable
class CollectionGateway(Protocol):
    """
    Gateway para o data store de documentos com notificações push.

    Implementações:
    - InMemoryCollectionGateway (testes, prototipagem)
    - DjangoCollectionGateway (persistência via Django ORM)

    Contrato de live query:
        Cada evento on_data é uma snapshot total e ordenada do
        resultado; on_error é terminal. Eventos de uma mesma
        subscription chegam na ordem emitida.

    Falhas são reportadas como GatewayError (ou PermissionDeniedError).
    """

    def open_live_query(
        self,
        shape: QueryShape,
        on_data: OnData,
        on_error: OnError,
    ) -> Subscription:
        """Abre um canal vivo para a forma de consulta."""
        ...

    def get_document(self, collection: str, doc_id: str) -> Optional[RawDocument]:
        """Busca documento por ID. Retorna None se não existir."""
        ...

    def write_document(self, collection: str, doc_id: str, patch: Dict[str, Any]) -> None:
        """Merge-write: mescla patch no documento (cria se ausente)."""
        ...

    def update_document(self, collection: str, doc_id: str, patch: Dict[str, Any]) -> None:
        """
        Mescla patch em documento existente.

        Raises:
            EntityNotFoundError: Documento não existe (nada é gravado)
        """
        ...

    def create_document(self, collection: str, data: Dict[str, Any]) -> str:
        """Cria documento com ID gerado pelo gateway e retorna o ID."""
        ...

    def delete_document(self, collection: str, doc_id: str) -> None:
        """Remove documento."""
        ...


class EventPublisher(ABC):
    """
    Interface para publicação de eventos.

    Adapters implementam para integrar com diferentes destinos
    (log, Celery, memória para testes).
    """

    @abstractmethod
    def publish(self, event: DomainEvent) -> None:
        """Publica evento para consumidores."""
        raise NotImplementedError

    def publish_batch(self, events: List[DomainEvent]) -> None:
        """Publica múltiplos eventos em ordem."""
        for event in events:
            self.publish(event)


class UnitOfWork(ABC):
    """
    Unit of Work - Coordena escrita e publicação de eventos.

    O gateway não tem transações multi-documento; o UoW garante
    que eventos só são publicados se a escrita dentro do bloco
    terminou sem exceção.

    Pattern: Context Manager
        with uow:
            gateway.write_document(...)
            uow.publish_event(event)
        # Commit ao sair sem erro: eventos publicados
        # Rollback se exceção: eventos descartados
    """

    def __init__(self):
        self._events: List[DomainEvent] = []

    def __enter__(self) -> "UnitOfWork":
        self._begin()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is not None:
            self.rollback()
        else:
            self.commit()
        return False  # Não suprime exceções

    def _begin(self) -> None:
        """Hook de início de bloco (subclasses podem sobrescrever)."""
        pass

    @abstractmethod
    def commit(self) -> None:
        """Publica eventos enfileirados e limpa o estado."""
        raise NotImplementedError

    @abstractmethod
    def rollback(self) -> None:
        """Descarta eventos enfileirados."""
        raise NotImplementedError

    def publish_event(self, event: DomainEvent) -> None:
        """
        Enfileira evento para publicação após commit.

        Args:
            event: Evento de domínio a ser publicado
        """
        self._events.append(event)

    def collect_events(self) -> List[DomainEvent]:
        """Retorna eventos enfileirados (para testing/debugging)."""
        return list(self._events)

    def clear_events(self) -> None:
        """Limpa fila de eventos."""
        self._events.clear()


def as_subscription_error(error: Exception, shape: QueryShape) -> SubscriptionError:
    """Normaliza qualquer falha de live query para SubscriptionError."""
    if isinstance(error, SubscriptionError):
        return error
    return SubscriptionError(
        f"Live query em '{shape.collection}' falhou: {error}",
        query=shape,
    )


# =============================================================================
# Entrega de snapshots entre threads
# =============================================================================

async def run_blocking(func: Callable[..., Any], *args: Any) -> Any:
    """
    Executa chamada bloqueante do gateway numa thread auxiliar.

    Snapshots disparadas pela chamada voltam para o loop corrente,
    então callbacks de projeção continuam rodando na thread do loop
    e já foram aplicados quando o await retorna.
    """
    token = DELIVERY_LOOP.set(asyncio.get_running_loop())
    try:
        return await asyncio.to_thread(func, *args)
    finally:
        DELIVERY_LOOP.reset(token)


def dispatch_delivery(callback: Callable[..., None], *args: Any) -> None:
    """Chama callback de entrega na thread dona do loop de entrega, se houver."""
    loop = DELIVERY_LOOP.get()
    if loop is None or _running_loop() is loop:
        callback(*args)
    else:
        loop.call_soon_threadsafe(callback, *args)


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None
