"""
Use Cases (Application Services) do Domínio de Tickets.

Use Cases implementados:
- CreateTicketService: Cria novo ticket (status sempre pending)
- GetTicketService: Obtém ticket por ID (tela de detalhe)

Transições de status e comentários ficam no TicketWorkflowController.

Princípios:
- Um Use Case = Uma operação de negócio
- Dependências injetadas (DI)
- Validação antes de qualquer chamada ao gateway
"""

from servicedesk.core.shared.exceptions import (
    EntityNotFoundError,
    GatewayError,
    ValidationError,
    WriteError,
)
from servicedesk.core.shared.interfaces import CollectionGateway, UnitOfWork
from servicedesk.core.users.entities import Identity

from .dtos import CreateTicketInputDTO
from .entities import Ticket, TicketPriority
from .events import TicketCreatedEvent
from .mappers import TicketMapper
from .ports import TICKETS_COLLECTION


class CreateTicketService:
    """
    Use Case: Criar novo ticket.

    Regras:
    - Título, descrição e categoria obrigatórios
    - Prioridade deve ser válida (padrão medium)
    - Status forçado para pending
    - Autor copiado da identidade autenticada
    - createdAt/updatedAt atribuídos pelo relógio do gateway

    Example:
        service = CreateTicketService(gateway, uow)
        ticket_id = service.execute(
            CreateTicketInputDTO(
                title="VPN não conecta",
                description="Erro 809 desde ontem",
                category="Rede",
                priority="high",
            ),
            identity,
        )
    """

    def __init__(self, gateway: CollectionGateway, uow: UnitOfWork):
        self.gateway = gateway
        self.uow = uow

    def execute(self, input_dto: CreateTicketInputDTO, identity: Identity) -> str:
        """
        Executa criação do ticket.

        Returns:
            ID do novo documento

        Raises:
            ValidationError: Campo obrigatório ausente ou prioridade inválida
            WriteError: Falha na escrita
        """
        self._validate(input_dto)

        document = TicketMapper.to_create_document(input_dto, identity)

        try:
            with self.uow:
                ticket_id = self.gateway.create_document(TICKETS_COLLECTION, document)
                self.uow.publish_event(TicketCreatedEvent(
                    aggregate_id=ticket_id,
                    user_id=identity.uid,
                    title=document["title"],
                    priority=document["priority"],
                    category=document["category"],
                ))
        except GatewayError as e:
            raise WriteError(
                f"Falha ao criar ticket: {e.message}",
                operation="create_ticket",
            ) from e

        return ticket_id

    def _validate(self, input_dto: CreateTicketInputDTO) -> None:
        for field_name in ("title", "description", "category"):
            value = getattr(input_dto, field_name)
            if not value or not value.strip():
                raise ValidationError(
                    f"Campo obrigatório: {field_name}",
                    field=field_name,
                )

        try:
            TicketPriority.from_string(input_dto.priority)
        except ValueError as e:
            raise ValidationError(str(e), field="priority") from e


class GetTicketService:
    """
    Use Case: Obter ticket por ID.

    Ticket ausente → EntityNotFoundError. Falhas de permissão do
    gateway propagam como PermissionDeniedError, distintas de
    "não encontrado".
    """

    def __init__(self, gateway: CollectionGateway):
        self.gateway = gateway

    def execute(self, ticket_id: str) -> Ticket:
        if not ticket_id:
            raise ValidationError("ID do ticket é obrigatório", field="ticket_id")

        document = self.gateway.get_document(TICKETS_COLLECTION, ticket_id)
        if document is None:
            raise EntityNotFoundError(
                f"Ticket {ticket_id} não encontrado",
                entity_type="Ticket",
                entity_id=ticket_id,
            )

        return TicketMapper.to_entity(document)
