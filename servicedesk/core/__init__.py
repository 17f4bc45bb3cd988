"""
Core Domain Layer - O Hexágono.

Este pacote contém a lógica de negócio pura, sem dependências de frameworks.
Características:
- Nenhum import de Django ou Celery
- Gateway de documentos sempre injetado (testável com o fake em memória)
- Agnóstico a infraestrutura
"""
