"""
Mappers para conversão entre documentos do gateway e entidades.

Responsabilidades:
- Converter documento cru → Ticket (para a projeção)
- Converter entrada de criação → documento (para o gateway)

Princípios:
- Mappers são stateless
- Não contêm lógica de negócio
- Documentos usam os nomes camelCase da coleção remota
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from servicedesk.core.shared.interfaces import RawDocument, SERVER_TIMESTAMP
from servicedesk.core.users.entities import Identity

from .dtos import CreateTicketInputDTO
from .entities import Ticket, TicketStatus, TicketUpdate


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Normaliza timestamp vindo do gateway.

    Aceita datetime, string ISO-8601 ou epoch em segundos.
    None (timestamp do servidor ainda pendente) é preservado.

    Raises:
        ValueError: Se o valor não puder ser interpretado
    """
    if value is None or value is SERVER_TIMESTAMP:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, str):
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    raise ValueError(f"Timestamp inválido: {value!r}")


class TicketMapper:
    """
    Mapper entre documentos da coleção "tickets" e Ticket.

    Responsável por:
    - to_entity(): documento → Ticket
    - to_entity_list(): List[documento] → List[Ticket]
    - to_create_document(): entrada de criação → documento novo
    - update_to_document(): TicketUpdate → item do array "updates"
    """

    @staticmethod
    def to_entity(document: RawDocument) -> Ticket:
        """
        Converte documento cru para Ticket.

        Raises:
            KeyError: Se o documento não tem "id"
            ValueError: Se algum timestamp é inválido
        """
        updates = tuple(
            TicketUpdate(
                text=item.get("text", ""),
                created_at=parse_timestamp(item.get("createdAt")),
                created_by=item.get("createdBy", ""),
            )
            for item in document.get("updates") or []
        )

        return Ticket(
            id=document["id"],
            title=document.get("title", ""),
            description=document.get("description", ""),
            category=document.get("category", ""),
            priority=document.get("priority", ""),
            status=document.get("status", ""),
            user_id=document.get("userId", ""),
            user_email=document.get("userEmail", ""),
            user_name=document.get("userName", ""),
            created_at=parse_timestamp(document.get("createdAt")),
            updated_at=parse_timestamp(document.get("updatedAt")),
            rejection_reason=document.get("rejectionReason"),
            updates=updates,
        )

    @staticmethod
    def to_entity_list(documents: List[RawDocument]) -> List[Ticket]:
        return [TicketMapper.to_entity(d) for d in documents]

    @staticmethod
    def to_create_document(dto: CreateTicketInputDTO, identity: Identity) -> Dict[str, Any]:
        """
        Monta documento de criação.

        Status é sempre pending e os timestamps ficam a cargo
        do relógio do gateway.
        """
        return {
            "title": dto.title.strip(),
            "description": dto.description.strip(),
            "category": dto.category.strip(),
            "priority": dto.priority.strip().lower(),
            "status": TicketStatus.PENDING.value,
            "userId": identity.uid,
            "userEmail": identity.email or "",
            "userName": identity.display_name or "",
            "createdAt": SERVER_TIMESTAMP,
            "updatedAt": SERVER_TIMESTAMP,
        }

    @staticmethod
    def update_to_document(update: TicketUpdate) -> Dict[str, Any]:
        return {
            "text": update.text,
            "createdAt": update.created_at,
            "createdBy": update.created_by,
        }
