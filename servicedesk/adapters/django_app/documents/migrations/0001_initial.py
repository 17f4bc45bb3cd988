"""
Migration inicial do armazenamento de documentos.

Cria a tabela:
- documents: Documentos de todas as coleções
"""

from django.db import migrations, models
import django.core.serializers.json


class Migration(migrations.Migration):
    """Migration inicial."""

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name="DocumentModel",
            fields=[
                ("id", models.BigAutoField(
                    auto_created=True,
                    primary_key=True,
                    serialize=False,
                    verbose_name="ID",
                )),
                ("collection", models.CharField(
                    max_length=100,
                    db_index=True,
                    help_text="Nome da coleção",
                )),
                ("doc_id", models.CharField(
                    max_length=128,
                    help_text="ID do documento na coleção",
                )),
                ("data", models.JSONField(
                    default=dict,
                    encoder=django.core.serializers.json.DjangoJSONEncoder,
                    help_text="Conteúdo do documento",
                )),
                ("created_at", models.DateTimeField(
                    null=True,
                    blank=True,
                    db_index=True,
                    help_text="Timestamp de criação (atribuído pelo servidor)",
                )),
                ("updated_at", models.DateTimeField(
                    null=True,
                    blank=True,
                    help_text="Timestamp da última atualização",
                )),
            ],
            options={
                "verbose_name": "Documento",
                "verbose_name_plural": "Documentos",
                "db_table": "documents",
            },
        ),
        migrations.AddConstraint(
            model_name="documentmodel",
            constraint=models.UniqueConstraint(
                fields=("collection", "doc_id"),
                name="unique_document_per_collection",
            ),
        ),
        migrations.AddIndex(
            model_name="documentmodel",
            index=models.Index(
                fields=["collection", "created_at"],
                name="documents_coll_created_idx",
            ),
        ),
    ]
