"""
Testes Unitários para Use Cases do Domínio de Usuários.

Coverage:
- ProfileService: criação preguiçosa e edição do perfil
- UserAdministrationService: papéis e remoção (somente admin)
"""

import asyncio

import pytest

from servicedesk.core.shared.exceptions import (
    AuthorizationError,
    GatewayError,
    ValidationError,
    WriteError,
)
from servicedesk.core.users.authorization import AuthorizationGate
from servicedesk.core.users.events import UserDeletedEvent, UserRoleChangedEvent
from servicedesk.core.users.use_cases import ProfileService, UserAdministrationService


class TestProfileService:
    """Testes para ProfileService."""

    def test_primeiro_acesso_cria_perfil_sem_role(self, gateway, user_identity):
        profile = ProfileService(gateway).get_or_create(user_identity)

        assert profile.uid == "u-1"
        assert profile.name == "Ana Souza"
        assert profile.role is None
        assert profile.effective_role == "user"
        assert "role" not in gateway.get_document("users", "u-1")

    def test_perfil_existente_nao_reescrito(self, gateway, user_identity):
        gateway.seed("users", "u-1", {"name": "Ana S.", "department": "TI", "role": "admin"})

        profile = ProfileService(gateway).get_or_create(user_identity)

        assert profile.name == "Ana S."
        assert profile.is_admin
        assert gateway.write_log == []

    def test_falha_ao_criar_perfil(self, gateway, user_identity):
        gateway.fail_writes = GatewayError("offline")

        with pytest.raises(WriteError) as exc_info:
            ProfileService(gateway).get_or_create(user_identity)

        assert exc_info.value.operation == "create_profile"

    def test_update_grava_campos_editaveis(self, gateway, user_identity):
        gateway.seed("users", "u-1", {"name": "Ana", "email": "velho@example.com", "role": "admin"})

        profile = ProfileService(gateway).update(user_identity, {"phone": " 1234 ", "department": "TI"})

        assert profile.phone == "1234"
        document = gateway.get_document("users", "u-1")
        assert document["department"] == "TI"
        assert document["email"] == "ana@example.com"
        # Papel preservado pelo merge-write
        assert document["role"] == "admin"

    def test_update_campo_nao_editavel_erro(self, gateway, user_identity):
        with pytest.raises(ValidationError) as exc_info:
            ProfileService(gateway).update(user_identity, {"role": "admin"})

        assert exc_info.value.field == "role"
        assert gateway.write_log == []

    def test_update_falha_de_escrita(self, gateway, user_identity):
        gateway.seed("users", "u-1", {"name": "Ana"})
        gateway.fail_writes = GatewayError("offline")

        with pytest.raises(WriteError) as exc_info:
            ProfileService(gateway).update(user_identity, {"name": "Ana Maria"})

        assert exc_info.value.operation == "update_profile"


@pytest.fixture
def admin_service(gateway, uow):
    return UserAdministrationService(gateway, uow, AuthorizationGate(gateway))


class TestUserAdministrationService:
    """Testes para UserAdministrationService."""

    def test_grant_admin(self, gateway, uow, admin_service, seed_admin):
        gateway.seed("users", "u-1", {"name": "Ana"})

        asyncio.run(admin_service.grant_admin(seed_admin, "u-1"))

        assert gateway.get_document("users", "u-1") == {"id": "u-1", "name": "Ana", "role": "admin"}
        event = uow.published_events[0]
        assert isinstance(event, UserRoleChangedEvent)
        assert event.new_role == "admin"
        assert event.changed_by == seed_admin.uid

    def test_revoke_admin(self, gateway, admin_service, seed_admin):
        gateway.seed("users", "u-1", {"role": "admin"})

        asyncio.run(admin_service.revoke_admin(seed_admin, "u-1"))

        assert gateway.get_document("users", "u-1")["role"] == "user"

    def test_usuario_comum_nao_altera_papel(self, gateway, admin_service, user_identity):
        gateway.seed("users", "u-2", {"name": "Bruno"})

        with pytest.raises(AuthorizationError):
            asyncio.run(admin_service.grant_admin(user_identity, "u-2"))

        assert gateway.write_log == []

    def test_papel_invalido(self, gateway, admin_service, seed_admin):
        with pytest.raises(ValidationError) as exc_info:
            asyncio.run(admin_service.set_role(seed_admin, "u-1", "root"))

        assert exc_info.value.field == "role"
        assert gateway.write_log == []

    def test_falha_de_escrita(self, gateway, uow, admin_service, seed_admin):
        gateway.fail_writes = GatewayError("offline")

        with pytest.raises(WriteError):
            asyncio.run(admin_service.grant_admin(seed_admin, "u-1"))

        assert uow.published_events == []

    def test_delete_user(self, gateway, uow, admin_service, seed_admin):
        gateway.seed("users", "u-1", {"name": "Ana"})

        asyncio.run(admin_service.delete_user(seed_admin, "u-1"))

        assert gateway.get_document("users", "u-1") is None
        assert isinstance(uow.published_events[0], UserDeletedEvent)

    def test_delete_user_exige_admin(self, gateway, admin_service, user_identity):
        gateway.seed("users", "u-2", {"name": "Bruno"})

        with pytest.raises(AuthorizationError):
            asyncio.run(admin_service.delete_user(user_identity, "u-2"))

        assert gateway.count("users") == 1
