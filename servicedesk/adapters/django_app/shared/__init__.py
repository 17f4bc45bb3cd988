"""Componentes de infraestrutura compartilhados entre adapters."""

from .unit_of_work import DjangoUnitOfWork, InMemoryUnitOfWork

__all__ = ["DjangoUnitOfWork", "InMemoryUnitOfWork"]
