"""
Django Models do armazenamento de documentos.

Estes models são ADAPTERS: o Core só enxerga dicionários via
CollectionGateway, nunca o model.

Tabela única:
- DocumentModel: um documento por (collection, doc_id), conteúdo em JSON
"""

from django.core.serializers.json import DjangoJSONEncoder
from django.db import models


class DocumentModel(models.Model):
    """
    Documento de uma coleção.

    Fields:
        collection: Nome da coleção ("tickets", "users")
        doc_id: ID do documento dentro da coleção
        data: Campos do documento (JSON, nomes camelCase)
        created_at: Espelho indexado de data["createdAt"] para ordenação
        updated_at: Espelho indexado de data["updatedAt"]
    """

    collection = models.CharField(
        max_length=100,
        db_index=True,
        help_text="Nome da coleção",
    )

    doc_id = models.CharField(
        max_length=128,
        help_text="ID do documento na coleção",
    )

    data = models.JSONField(
        default=dict,
        encoder=DjangoJSONEncoder,
        help_text="Conteúdo do documento",
    )

    created_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        help_text="Timestamp de criação (atribuído pelo servidor)",
    )

    updated_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Timestamp da última atualização",
    )

    class Meta:
        db_table = "documents"
        verbose_name = "Documento"
        verbose_name_plural = "Documentos"
        constraints = [
            models.UniqueConstraint(
                fields=["collection", "doc_id"],
                name="unique_document_per_collection",
            ),
        ]
        indexes = [
            models.Index(fields=["collection", "created_at"], name="documents_coll_created_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.collection}/{self.doc_id}"
