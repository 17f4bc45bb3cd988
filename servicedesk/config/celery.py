"""
Configuração do Celery para processamento assíncrono.

O Celery é usado para:
- Processar Domain Events publicados após escritas no gateway
- Notificações por e-mail (rejeição de ticket, equipe de suporte)
- Métricas

Arquitetura:
- Broker: RabbitMQ (mensagens entre aplicação e workers)
- Backend: Redis (resultados de tarefas)
- Workers: Processos que executam as tarefas

Uso:
    celery -A servicedesk.config.celery worker -l INFO -Q default,events,notifications
"""

import os

from celery import Celery
from kombu import Exchange, Queue

# Definir módulo de settings do Django
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "servicedesk.config.settings")

# Criar aplicação Celery
app = Celery("servicedesk")

# Carregar configurações do Django (prefixo CELERY_)
app.config_from_object("django.conf:settings", namespace="CELERY")

app.conf.update(
    # Monitoramento
    worker_send_task_events=True,
    task_send_sent_event=True,
)

# Definir filas
app.conf.task_queues = (
    Queue("default", Exchange("default"), routing_key="default"),
    Queue("events", Exchange("events"), routing_key="events.#"),
    Queue("notifications", Exchange("notifications"), routing_key="notifications.#"),
)
app.conf.task_default_queue = "default"

# Roteamento de tarefas para filas
app.conf.task_routes = {
    "servicedesk.adapters.django_app.events.handlers.notify_*": {"queue": "notifications"},
    "servicedesk.adapters.django_app.events.handlers.*": {"queue": "events"},
}

# Auto-descoberta de tarefas
app.autodiscover_tasks(
    ["servicedesk.adapters.django_app.events"],
    related_name="handlers",
)
