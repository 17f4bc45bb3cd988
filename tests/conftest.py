"""
Configurações globais do Pytest para o Service Desk.

Este arquivo é carregado automaticamente pelo pytest e
fornece fixtures e configurações compartilhadas:
- Django configurado com SQLite em memória (adapters)
- Gateway em memória, Unit of Work em memória e identidades
"""

from datetime import datetime, timedelta, timezone

import pytest


def pytest_configure(config):
    """Configura Django antes da coleta dos testes."""
    import django
    from django.conf import settings

    if not settings.configured:
        settings.configure(
            DEBUG=True,
            DATABASES={
                "default": {
                    "ENGINE": "django.db.backends.sqlite3",
                    "NAME": ":memory:",
                }
            },
            INSTALLED_APPS=[
                "django.contrib.contenttypes",
                "servicedesk.adapters.django_app.documents",
            ],
            DEFAULT_AUTO_FIELD="django.db.models.BigAutoField",
            USE_TZ=True,
            TIME_ZONE="America/Sao_Paulo",
            EMAIL_BACKEND="django.core.mail.backends.locmem.EmailBackend",
            DEFAULT_FROM_EMAIL="servicedesk@test.local",
            SUPPORT_TEAM_EMAILS=["suporte@test.local"],
        )
        django.setup()

    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


# =============================================================================
# Relógio
# =============================================================================

BASE_TIME = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Relógio controlável: cada chamada avança um segundo."""

    def __init__(self, start: datetime = BASE_TIME):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + timedelta(seconds=1)
        return current


@pytest.fixture
def clock():
    return FakeClock()


# =============================================================================
# Infraestrutura em memória
# =============================================================================

@pytest.fixture
def gateway(clock):
    """Gateway em memória com entrega síncrona."""
    from servicedesk.core.shared.gateway import InMemoryCollectionGateway
    return InMemoryCollectionGateway(clock=clock)


@pytest.fixture
def manual_gateway(clock):
    """Gateway em memória em que o teste decide quando entregar (flush)."""
    from servicedesk.core.shared.gateway import InMemoryCollectionGateway
    return InMemoryCollectionGateway(auto_flush=False, clock=clock)


@pytest.fixture
def uow():
    from servicedesk.adapters.django_app.shared.unit_of_work import InMemoryUnitOfWork
    return InMemoryUnitOfWork()


# =============================================================================
# Identidades
# =============================================================================

@pytest.fixture
def user_identity():
    from servicedesk.core.users.entities import Identity
    return Identity(uid="u-1", email="ana@example.com", display_name="Ana Souza")


@pytest.fixture
def admin_identity():
    from servicedesk.core.users.entities import Identity
    return Identity(uid="admin-1", email="root@example.com", display_name="Admin")


@pytest.fixture
def seed_admin(gateway, admin_identity):
    """Perfil administrativo gravado na coleção users."""
    gateway.seed("users", admin_identity.uid, {
        "name": admin_identity.display_name,
        "email": admin_identity.email,
        "role": "admin",
    })
    return admin_identity


# =============================================================================
# Tickets
# =============================================================================

@pytest.fixture
def make_ticket():
    """Factory de Ticket (entidade) com valores padrão."""
    from servicedesk.core.tickets.entities import Ticket

    counter = {"n": 0}

    def factory(**kwargs):
        counter["n"] += 1
        defaults = {
            "id": f"t-{counter['n']}",
            "title": f"Ticket {counter['n']}",
            "description": "Descrição do problema",
            "category": "Geral",
            "priority": "medium",
            "status": "pending",
            "user_id": "u-1",
            "user_email": "ana@example.com",
            "user_name": "Ana Souza",
            "created_at": BASE_TIME + timedelta(minutes=counter["n"]),
        }
        defaults.update(kwargs)
        return Ticket(**defaults)

    return factory


@pytest.fixture
def seed_ticket(gateway):
    """Grava documento de ticket no gateway e retorna o ID."""

    def factory(doc_id: str, **fields):
        document = {
            "title": "VPN não conecta",
            "description": "Erro 809 desde ontem",
            "category": "Rede",
            "priority": "medium",
            "status": "pending",
            "userId": "u-1",
            "userEmail": "ana@example.com",
            "userName": "Ana Souza",
            "createdAt": BASE_TIME,
            "updatedAt": BASE_TIME,
        }
        document.update(fields)
        gateway.seed("tickets", doc_id, document)
        return doc_id

    return factory
