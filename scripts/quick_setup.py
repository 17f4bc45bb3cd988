#!/usr/bin/env python
"""
Setup rápido para desenvolvimento local.

Este script:
1. Configura Django settings
2. Cria banco de dados SQLite
3. Executa migrations (tabela de documentos)
4. Cria dados de exemplo (opcional): perfis, tickets, uma rejeição e comentários

Uso:
    python scripts/quick_setup.py
    python scripts/quick_setup.py --with-sample-data
"""

import argparse
import asyncio
import os
import sys

# Raiz do projeto no path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def setup_django():
    """Configura Django para uso standalone."""
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "servicedesk.config.settings")
    os.environ.setdefault("GATEWAY_BACKEND", "django")

    import django
    django.setup()


def run_migrations():
    """Executa migrations."""
    from django.core.management import call_command

    print("📦 Executando migrations...")
    call_command("migrate", verbosity=1)
    print("✅ Migrations concluídas!")


def create_sample_data():
    """Cria perfis e tickets de exemplo pelo container."""
    from servicedesk.config.container import get_container
    from servicedesk.core.tickets.dtos import CreateTicketInputDTO
    from servicedesk.core.tickets.use_cases import GetTicketService
    from servicedesk.core.users.entities import Identity

    container = get_container()
    gateway = container.gateway()

    admin = Identity(uid="admin-001", email="admin@servicedesk.local", display_name="Administrador")
    users = [
        Identity(uid="user-001", email="ana@servicedesk.local", display_name="Ana Souza"),
        Identity(uid="user-002", email="bruno@servicedesk.local", display_name="Bruno Lima"),
    ]

    print("👤 Criando perfis...")
    profiles = container.profile_service()
    for identity in [admin] + users:
        profiles.get_or_create(identity)
        print(f"   ✓ {identity.display_name}")

    # Promoção inicial: ainda não existe admin para conceder o papel
    gateway.write_document("users", admin.uid, {"role": "admin"})

    sample_tickets = [
        (users[0], CreateTicketInputDTO("Sistema fora do ar", "Erro 503 em todas as páginas.", "Infraestrutura", "urgent")),
        (users[0], CreateTicketInputDTO("Bug no login com Google", "O botão de login não responde.", "Autenticação", "high")),
        (users[1], CreateTicketInputDTO("Relatório com dados incorretos", "Valores negativos no relatório de vendas.", "Relatórios", "medium")),
        (users[1], CreateTicketInputDTO("Modo escuro", "Seria interessante ter um modo escuro.", "UX/UI", "low")),
    ]

    print("📝 Criando tickets de exemplo...")
    create_ticket = container.create_ticket_service()
    ticket_ids = []
    for identity, dto in sample_tickets:
        ticket_ids.append(create_ticket.execute(dto, identity))
        print(f"   ✓ {dto.title[:50]}")

    get_ticket = GetTicketService(gateway)
    controller = container.workflow_controller()

    controller.append_comment(ticket_ids[0], "Servidor reiniciado, monitorando.", admin.email)
    controller.change_status(get_ticket.execute(ticket_ids[0]), "resolved")

    controller.stage_rejection(get_ticket.execute(ticket_ids[3]))
    controller.confirm_rejection("Fora do escopo do suporte.")

    guard = container.admin_route_guard()
    decision = asyncio.run(guard.resolve(admin))
    print(f"✅ {len(sample_tickets)} tickets criados! Acesso admin de {admin.uid}: {decision.value}")


def check_connection():
    """Verifica conexão com o banco."""
    from django.db import DatabaseError, connection

    print("🔍 Verificando conexão com o banco...")

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
    except DatabaseError as e:
        print(f"❌ Erro de conexão: {e}")
        return False

    print("✅ Conexão OK!")
    return True


def show_info():
    """Mostra informações do setup."""
    from django.conf import settings

    print("\n" + "=" * 60)
    print("📊 Informações do Setup")
    print("=" * 60)
    print(f"  Database Engine: {settings.DATABASES['default']['ENGINE']}")
    print(f"  Database Name: {settings.DATABASES['default']['NAME']}")
    print(f"  Gateway: {settings.GATEWAY_BACKEND}")
    print(f"  Event Publisher: {settings.EVENT_PUBLISHER_MODE}")
    print("=" * 60)
    print("\n🚀 Próximos passos:")
    print("   1. celery -A servicedesk.config.celery worker -l INFO -Q default,events,notifications")
    print("   2. EVENT_PUBLISHER_MODE=celery para despachar eventos ao worker")
    print("\n")


def main():
    parser = argparse.ArgumentParser(description="Setup rápido para desenvolvimento")
    parser.add_argument(
        "--with-sample-data",
        action="store_true",
        help="Criar dados de exemplo",
    )
    parser.add_argument(
        "--check-only",
        action="store_true",
        help="Apenas verificar conexão",
    )

    args = parser.parse_args()

    print("\n" + "=" * 60)
    print("🔧 Service Desk - Quick Setup")
    print("=" * 60 + "\n")

    setup_django()

    if args.check_only:
        check_connection()
        return

    if not check_connection():
        print("\n⚠️  Certifique-se de que o banco de dados está rodando.")
        print("   Sem DATABASE_URL o SQLite local (db.sqlite3) é usado.")
        return

    run_migrations()

    if args.with_sample_data:
        create_sample_data()

    show_info()


if __name__ == "__main__":
    main()
