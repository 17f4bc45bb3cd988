"""
Configuração do Django App de documentos.
"""

from django.apps import AppConfig


class DocumentsConfig(AppConfig):
    """Configuração do app Documents."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "servicedesk.adapters.django_app.documents"
    label = "documents"
    verbose_name = "Armazenamento de Documentos"

    def ready(self):
        """Conecta os signals que alimentam as live queries."""
        from . import gateway  # noqa: F401
