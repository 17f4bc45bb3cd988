"""
Ticket Workflow Controller - Máquina de estados de tickets.

Transições permitidas:
    pending  → resolved | rejected | closed
    resolved → closed

Rejeição em duas fases:
    1. stage_rejection(): guarda o ticket alvo e abre o rascunho do motivo
       (nenhuma escrita)
    2. confirm_rejection(): grava {status, rejectionReason, updatedAt} em
       uma única escrita
    cancel_rejection() descarta o estágio sem escrever nada.

Demais transições são de fase única: uma escrita de {status, updatedAt}.

Comentários podem ser anexados em qualquer estado e não alteram o status.

O controller nunca altera entidades projetadas localmente: a próxima
snapshot da projeção é a fonte da verdade sobre a escrita.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, FrozenSet, Optional, Union
import logging

from servicedesk.core.shared.exceptions import (
    BusinessRuleViolationError,
    EntityNotFoundError,
    GatewayError,
    ValidationError,
    WriteError,
)
from servicedesk.core.shared.interfaces import CollectionGateway, UnitOfWork

from .entities import Ticket, TicketStatus, TicketUpdate
from .events import (
    TicketCommentAddedEvent,
    TicketRejectedEvent,
    TicketStatusChangedEvent,
)
from .mappers import TicketMapper
from .ports import TICKETS_COLLECTION

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


TRANSITIONS: Dict[TicketStatus, FrozenSet[TicketStatus]] = {
    TicketStatus.PENDING: frozenset({
        TicketStatus.RESOLVED,
        TicketStatus.REJECTED,
        TicketStatus.CLOSED,
    }),
    TicketStatus.RESOLVED: frozenset({TicketStatus.CLOSED}),
}


def _as_status(value: Union[TicketStatus, str, None]) -> Optional[TicketStatus]:
    if isinstance(value, TicketStatus):
        return value
    try:
        return TicketStatus.from_string(value or "")
    except ValueError:
        return None


def can_transition(current: Union[TicketStatus, str], target: Union[TicketStatus, str]) -> bool:
    """
    Verifica se a transição é permitida.

    Status legados ou desconhecidos não têm transições.
    """
    current_status = _as_status(current)
    target_status = _as_status(target)
    if current_status is None or target_status is None:
        return False
    return target_status in TRANSITIONS.get(current_status, frozenset())


@dataclass
class StagedRejection:
    """
    Rejeição em andamento (fase 1).

    Attributes:
        ticket_id: Ticket alvo
        previous_status: Status do ticket no momento do estágio
        user_email: E-mail do criador (para notificação)
        reason: Rascunho do motivo
    """

    ticket_id: str
    previous_status: str
    user_email: str = ""
    reason: str = ""


class TicketWorkflowController:
    """
    Controller do workflow de tickets.

    Mantém no máximo uma rejeição em andamento; preparar outra
    rejeição substitui a anterior.

    Args:
        gateway: Gateway de documentos
        uow: Unit of Work (publica eventos após escrita bem-sucedida)
        clock: Relógio usado em updatedAt/createdAt das escritas

    Example:
        controller.change_status(ticket, "rejected")   # fase 1
        controller.update_reason("Duplicado do #42")
        controller.confirm_rejection()                  # fase 2
    """

    def __init__(self, gateway: CollectionGateway, uow: UnitOfWork, clock: Clock = utcnow):
        self.gateway = gateway
        self.uow = uow
        self.clock = clock
        self._staged: Optional[StagedRejection] = None

    # =========================================================================
    # Transições
    # =========================================================================

    def change_status(
        self,
        ticket: Ticket,
        target: Union[TicketStatus, str],
    ) -> Optional[StagedRejection]:
        """
        Solicita transição de status.

        Args:
            ticket: Ticket como visto na projeção
            target: Status de destino

        Returns:
            StagedRejection se o destino é rejected (nada é escrito),
            None se a transição foi gravada

        Raises:
            BusinessRuleViolationError: Destino inválido ou transição não permitida
            EntityNotFoundError: Ticket não existe mais (nada é gravado)
            WriteError: Falha na escrita
        """
        target_status = _as_status(target)
        if target_status is None:
            raise BusinessRuleViolationError(
                f"Status de destino inválido: {target}",
                rule="invalid_status",
            )

        self._ensure_transition(ticket, target_status)

        if target_status == TicketStatus.REJECTED:
            return self.stage_rejection(ticket)

        patch = {
            "status": target_status.value,
            "updatedAt": self.clock(),
        }
        event = TicketStatusChangedEvent(
            aggregate_id=ticket.id,
            previous_status=ticket.status,
            new_status=target_status.value,
        )
        self._write(ticket.id, patch, event, operation="change_status")
        logger.info(f"Ticket {ticket.id}: {ticket.status} → {target_status.value}")
        return None

    def stage_rejection(self, ticket: Ticket) -> StagedRejection:
        """
        Fase 1 da rejeição: guarda o alvo e zera o rascunho.

        Raises:
            BusinessRuleViolationError: Ticket não pode ser rejeitado
        """
        self._ensure_transition(ticket, TicketStatus.REJECTED)
        self._staged = StagedRejection(
            ticket_id=ticket.id,
            previous_status=ticket.status,
            user_email=ticket.user_email,
        )
        logger.debug(f"Rejeição preparada para ticket {ticket.id}")
        return self._staged

    @property
    def staged(self) -> Optional[StagedRejection]:
        """Rejeição em andamento, se houver."""
        return self._staged

    def update_reason(self, text: str) -> None:
        """Atualiza o rascunho do motivo."""
        self._require_staged().reason = text or ""

    def cancel_rejection(self) -> None:
        """Descarta o estágio e o rascunho. Nenhuma escrita."""
        if self._staged is not None:
            logger.debug(f"Rejeição cancelada para ticket {self._staged.ticket_id}")
        self._staged = None

    def confirm_rejection(self, reason: Optional[str] = None) -> str:
        """
        Fase 2 da rejeição: grava status e motivo em uma escrita.

        Args:
            reason: Motivo final (padrão: rascunho atual)

        Returns:
            ID do ticket rejeitado

        Raises:
            BusinessRuleViolationError: Nenhuma rejeição em andamento
            ValidationError: Motivo vazio
            EntityNotFoundError: Ticket não existe mais (o estágio é descartado)
            WriteError: Falha na escrita (estágio é mantido para nova tentativa)
        """
        staged = self._require_staged()
        if reason is not None:
            staged.reason = reason

        final_reason = staged.reason.strip()
        if not final_reason:
            raise ValidationError(
                "Motivo da rejeição é obrigatório",
                field="rejection_reason",
            )

        patch = {
            "status": TicketStatus.REJECTED.value,
            "rejectionReason": final_reason,
            "updatedAt": self.clock(),
        }
        event = TicketRejectedEvent(
            aggregate_id=staged.ticket_id,
            previous_status=staged.previous_status,
            reason=final_reason,
            user_email=staged.user_email,
        )
        try:
            self._write(staged.ticket_id, patch, event, operation="confirm_rejection")
        except EntityNotFoundError:
            self._staged = None
            raise

        self._staged = None
        logger.info(f"Ticket {staged.ticket_id} rejeitado")
        return staged.ticket_id

    # =========================================================================
    # Comentários
    # =========================================================================

    def append_comment(self, ticket_id: str, text: str, actor_email: str) -> None:
        """
        Anexa comentário ao array "updates" (read-modify-write).

        Raises:
            ValidationError: Texto vazio após trim (nenhuma chamada ao gateway)
            EntityNotFoundError: Ticket não existe
            WriteError: Falha de leitura ou escrita no gateway
        """
        stripped = (text or "").strip()
        if not stripped:
            raise ValidationError("Comentário não pode ser vazio", field="text")

        try:
            document = self.gateway.get_document(TICKETS_COLLECTION, ticket_id)
        except GatewayError as e:
            raise WriteError(
                f"Falha ao ler ticket {ticket_id}: {e.message}",
                operation="append_comment",
            ) from e

        if document is None:
            raise EntityNotFoundError(
                f"Ticket {ticket_id} não encontrado",
                entity_type="Ticket",
                entity_id=ticket_id,
            )

        updates = list(document.get("updates") or [])
        updates.append(TicketMapper.update_to_document(
            TicketUpdate(text=stripped, created_at=self.clock(), created_by=actor_email)
        ))

        event = TicketCommentAddedEvent(
            aggregate_id=ticket_id,
            text=stripped,
            created_by=actor_email,
        )
        self._write(ticket_id, {"updates": updates}, event, operation="append_comment")
        logger.info(f"Comentário anexado ao ticket {ticket_id} por {actor_email}")

    # =========================================================================
    # Internos
    # =========================================================================

    def _ensure_transition(self, ticket: Ticket, target: TicketStatus) -> None:
        if not can_transition(ticket.status, target):
            raise BusinessRuleViolationError(
                f"Transição não permitida: {ticket.status} → {target.value}",
                rule="invalid_status_transition",
            )

    def _require_staged(self) -> StagedRejection:
        if self._staged is None:
            raise BusinessRuleViolationError(
                "Nenhuma rejeição em andamento",
                rule="no_staged_rejection",
            )
        return self._staged

    def _write(self, ticket_id: str, patch: dict, event, operation: str) -> None:
        try:
            with self.uow:
                self.gateway.update_document(TICKETS_COLLECTION, ticket_id, patch)
                self.uow.publish_event(event)
        except GatewayError as e:
            logger.warning(f"Falha em {operation} do ticket {ticket_id}: {e}")
            raise WriteError(
                f"Falha ao gravar ticket {ticket_id}: {e.message}",
                operation=operation,
            ) from e
