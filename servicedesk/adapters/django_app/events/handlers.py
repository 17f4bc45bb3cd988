"""
Event Handlers - Processadores de Eventos de Domínio.

Handlers são executados de forma assíncrona via Celery quando
Domain Events são publicados pelo CeleryEventPublisher.

Tipos de Handlers:
- Notificação: e-mail ao criador do ticket / ao usuário afetado
- Agregação: métricas de criação, transição e rejeição

Payload:
    Todos os handlers recebem event.to_dict(); os campos
    específicos do evento ficam em event_data["data"].
"""

from typing import Any, Dict, Optional
import logging

from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger(__name__)


def _payload(event_data: Dict[str, Any]) -> Dict[str, Any]:
    return event_data.get("data") or {}


# =============================================================================
# Event Handlers - Tickets
# =============================================================================

@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    acks_late=True,
)
def handle_ticket_created(self, event_data: Dict[str, Any]) -> None:
    """
    Handler para TicketCreatedEvent.

    Ações:
    - Notificar equipe de suporte se prioridade high/urgent
    - Registrar métrica
    """
    ticket_id = event_data.get("aggregate_id")
    data = _payload(event_data)
    priority = data.get("priority", "medium")

    logger.info(
        f"[HANDLER] TicketCreated: {ticket_id} | "
        f"Criador: {data.get('user_id')} | Título: {data.get('title')}"
    )

    if priority in ("high", "urgent"):
        notify_support_team.delay(
            ticket_id=ticket_id,
            message=f"Novo ticket {priority}: {data.get('title')}",
            priority="high" if priority == "urgent" else "normal",
        )

    record_metric.delay(
        metric_name="tickets_created",
        value=1,
        tags={"priority": priority},
    )


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    acks_late=True,
)
def handle_ticket_status_changed(self, event_data: Dict[str, Any]) -> None:
    """Handler para TicketStatusChangedEvent: registra a transição."""
    ticket_id = event_data.get("aggregate_id")
    data = _payload(event_data)

    logger.info(
        f"[HANDLER] TicketStatusChanged: {ticket_id} | "
        f"{data.get('previous_status')} -> {data.get('new_status')}"
    )

    record_metric.delay(
        metric_name="tickets_status_changed",
        value=1,
        tags={"new_status": data.get("new_status", "")},
    )


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    acks_late=True,
)
def handle_ticket_rejected(self, event_data: Dict[str, Any]) -> None:
    """
    Handler para TicketRejectedEvent.

    Ações:
    - Enviar o motivo da rejeição ao criador do ticket
    - Registrar métrica
    """
    ticket_id = event_data.get("aggregate_id")
    data = _payload(event_data)
    reason = data.get("reason", "")

    logger.info(f"[HANDLER] TicketRejected: {ticket_id} | Motivo: {reason}")

    if data.get("user_email"):
        notify_user.delay(
            email=data["user_email"],
            subject=f"Ticket {ticket_id} rejeitado",
            message=f"Seu ticket foi rejeitado.\n\nMotivo: {reason}",
        )

    record_metric.delay(metric_name="tickets_rejected", value=1, tags={})


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    acks_late=True,
)
def handle_comment_added(self, event_data: Dict[str, Any]) -> None:
    """Handler para TicketCommentAddedEvent."""
    ticket_id = event_data.get("aggregate_id")
    data = _payload(event_data)

    logger.info(
        f"[HANDLER] CommentAdded: {ticket_id} | "
        f"Autor: {data.get('created_by')}"
    )

    record_metric.delay(metric_name="ticket_comments", value=1, tags={})


# =============================================================================
# Event Handlers - Users
# =============================================================================

@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    acks_late=True,
)
def handle_user_role_changed(self, event_data: Dict[str, Any]) -> None:
    """Handler para UserRoleChangedEvent: trilha de auditoria."""
    uid = event_data.get("aggregate_id")
    data = _payload(event_data)

    logger.info(
        f"[HANDLER] UserRoleChanged: {uid} -> {data.get('new_role')} | "
        f"Por: {data.get('changed_by')}"
    )

    record_metric.delay(
        metric_name="user_role_changes",
        value=1,
        tags={"new_role": data.get("new_role", "")},
    )


@shared_task(bind=True, max_retries=3, default_retry_delay=60, acks_late=True)
def handle_user_deleted(self, event_data: Dict[str, Any]) -> None:
    """Handler para UserDeletedEvent: trilha de auditoria."""
    logger.info(
        f"[HANDLER] UserDeleted: {event_data.get('aggregate_id')} | "
        f"Por: {_payload(event_data).get('deleted_by')}"
    )


# =============================================================================
# Event Dispatcher (Router)
# =============================================================================

EVENT_HANDLERS = {
    "TicketCreatedEvent": handle_ticket_created,
    "TicketStatusChangedEvent": handle_ticket_status_changed,
    "TicketRejectedEvent": handle_ticket_rejected,
    "TicketCommentAddedEvent": handle_comment_added,
    "UserRoleChangedEvent": handle_user_role_changed,
    "UserDeletedEvent": handle_user_deleted,
}


@shared_task(bind=True, max_retries=5, default_retry_delay=30)
def dispatch_domain_event(self, event_type: str, event_data: Dict[str, Any]) -> None:
    """
    Dispatcher central para Domain Events.

    Ponto de entrada de todos os eventos publicados via Celery.

    Args:
        event_type: Tipo do evento (ex: 'TicketRejectedEvent')
        event_data: Evento serializado (event.to_dict())
    """
    handler = EVENT_HANDLERS.get(event_type)

    if handler:
        logger.info(f"[DISPATCHER] Roteando {event_type} para handler")
        handler.delay(event_data)
    else:
        logger.warning(f"[DISPATCHER] Handler não encontrado para {event_type}")


# =============================================================================
# Notification Tasks
# =============================================================================

@shared_task(bind=True, max_retries=3, default_retry_delay=120)
def notify_user(self, email: str, subject: str, message: str) -> None:
    """Envia e-mail pelo backend de e-mail configurado no Django."""
    logger.info(f"[NOTIFICATION] EMAIL para {email}: {subject}")

    send_mail(
        subject,
        message,
        settings.DEFAULT_FROM_EMAIL,
        [email],
        fail_silently=False,
    )


@shared_task(bind=True, max_retries=3, default_retry_delay=60)
def notify_support_team(
    self,
    ticket_id: str,
    message: str,
    priority: str = "normal",
) -> None:
    """Notifica a equipe de suporte (lista SUPPORT_TEAM_EMAILS)."""
    logger.info(f"[NOTIFICATION] Equipe de suporte [{priority}]: Ticket {ticket_id} - {message}")

    recipients = list(getattr(settings, "SUPPORT_TEAM_EMAILS", []))
    if recipients:
        send_mail(
            f"[{priority}] Ticket {ticket_id}",
            message,
            settings.DEFAULT_FROM_EMAIL,
            recipients,
            fail_silently=False,
        )


# =============================================================================
# Metric Tasks
# =============================================================================

@shared_task(bind=True, ignore_result=True)
def record_metric(
    self,
    metric_name: str,
    value: float,
    tags: Optional[Dict[str, str]] = None,
) -> None:
    """Registra métrica no log estruturado."""
    logger.info(f"[METRIC] {metric_name}={value} | tags={tags or {}}")
