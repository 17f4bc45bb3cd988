"""
Use Cases do Domínio de Usuários.

Use Cases implementados:
- ProfileService: Leitura (com criação preguiçosa) e edição do próprio perfil
- UserAdministrationService: Gestão de papéis e remoção de perfis (admin)

Ações administrativas exigem que a identidade atuante passe pelo
AuthorizationGate; a aplicação das regras no data store é externa.
"""

from typing import Any, Dict, Optional
import logging

from servicedesk.core.shared.exceptions import (
    AuthorizationError,
    GatewayError,
    ValidationError,
    WriteError,
)
from servicedesk.core.shared.interfaces import CollectionGateway, UnitOfWork, run_blocking

from .authorization import AuthorizationGate
from .entities import Identity, UserProfile, UserRole
from .events import UserDeletedEvent, UserRoleChangedEvent
from .mappers import EDITABLE_FIELDS, UserProfileMapper
from .ports import USERS_COLLECTION

logger = logging.getLogger(__name__)


class ProfileService:
    """
    Use Case: Perfil do usuário autenticado.

    Example:
        service = ProfileService(gateway)
        profile = service.get_or_create(identity)
        service.update(identity, {"phone": "+55 11 99999-0000"})
    """

    def __init__(self, gateway: CollectionGateway):
        self.gateway = gateway

    def get_or_create(self, identity: Identity) -> UserProfile:
        """
        Retorna o perfil, criando o documento no primeiro acesso.

        Raises:
            GatewayError: Falha de leitura (inclui permissão negada)
            WriteError: Falha ao criar o documento inicial
        """
        document = self.gateway.get_document(USERS_COLLECTION, identity.uid)
        if document is not None:
            return UserProfileMapper.to_entity(document)

        initial = UserProfileMapper.initial_document(identity)
        try:
            self.gateway.write_document(USERS_COLLECTION, identity.uid, initial)
        except GatewayError as e:
            raise WriteError(
                f"Falha ao criar perfil de {identity.uid}: {e.message}",
                operation="create_profile",
            ) from e

        logger.info(f"Perfil criado para {identity.uid}")
        return UserProfileMapper.to_entity({**initial, "id": identity.uid})

    def update(self, identity: Identity, changes: Dict[str, Any]) -> UserProfile:
        """
        Grava o perfil completo com as alterações aplicadas.

        Apenas name, phone, location e department são editáveis;
        email é sempre o da identidade.

        Raises:
            ValidationError: Campo não editável em changes
            WriteError: Falha na escrita
        """
        for key in changes:
            if key not in EDITABLE_FIELDS:
                raise ValidationError(f"Campo não editável: {key}", field=key)

        profile = self.get_or_create(identity)
        for key, value in changes.items():
            setattr(profile, key, (value or "").strip())
        profile.email = identity.email or ""

        try:
            self.gateway.write_document(
                USERS_COLLECTION,
                identity.uid,
                UserProfileMapper.to_document(profile),
            )
        except GatewayError as e:
            raise WriteError(
                f"Falha ao salvar perfil de {identity.uid}: {e.message}",
                operation="update_profile",
            ) from e

        return profile


class UserAdministrationService:
    """
    Use Case: Administração de usuários.

    Toda ação verifica a identidade atuante no gate antes de
    qualquer escrita.

    Example:
        service = UserAdministrationService(gateway, uow, gate)
        await service.grant_admin(admin_identity, "uid-123")
    """

    def __init__(self, gateway: CollectionGateway, uow: UnitOfWork, gate: AuthorizationGate):
        self.gateway = gateway
        self.uow = uow
        self.gate = gate

    async def set_role(self, actor: Identity, uid: str, role: str) -> None:
        """
        Grava o papel de um usuário (merge-write).

        Raises:
            AuthorizationError: Identidade atuante não é admin
            ValidationError: Papel inválido
            WriteError: Falha na escrita
        """
        await self._require_admin(actor)

        try:
            new_role = UserRole.from_string(role)
        except ValueError as e:
            raise ValidationError(str(e), field="role") from e
        if not uid:
            raise ValidationError("uid é obrigatório", field="uid")

        try:
            with self.uow:
                await run_blocking(
                    self.gateway.write_document,
                    USERS_COLLECTION,
                    uid,
                    {"role": new_role.value},
                )
                self.uow.publish_event(UserRoleChangedEvent(
                    aggregate_id=uid,
                    new_role=new_role.value,
                    changed_by=actor.uid,
                ))
        except GatewayError as e:
            raise WriteError(
                f"Falha ao alterar papel de {uid}: {e.message}",
                operation="set_role",
            ) from e

        logger.info(f"Papel de {uid} alterado para {new_role.value} por {actor.uid}")

    async def grant_admin(self, actor: Identity, uid: str) -> None:
        await self.set_role(actor, uid, UserRole.ADMIN.value)

    async def revoke_admin(self, actor: Identity, uid: str) -> None:
        await self.set_role(actor, uid, UserRole.USER.value)

    async def delete_user(self, actor: Identity, uid: str) -> None:
        """
        Remove o documento de perfil.

        Raises:
            AuthorizationError: Identidade atuante não é admin
            WriteError: Falha na remoção
        """
        await self._require_admin(actor)
        if not uid:
            raise ValidationError("uid é obrigatório", field="uid")

        try:
            with self.uow:
                await run_blocking(self.gateway.delete_document, USERS_COLLECTION, uid)
                self.uow.publish_event(UserDeletedEvent(aggregate_id=uid, deleted_by=actor.uid))
        except GatewayError as e:
            raise WriteError(
                f"Falha ao remover usuário {uid}: {e.message}",
                operation="delete_user",
            ) from e

        logger.info(f"Usuário {uid} removido por {actor.uid}")

    async def _require_admin(self, actor: Optional[Identity]) -> None:
        if actor is None or not await self.gate.is_privileged(actor.uid):
            raise AuthorizationError(
                "Ação restrita a administradores",
                uid=actor.uid if actor else None,
            )
