"""
Service Desk - Núcleo de visualização e workflow de tickets.

Projeções vivas de coleções remotas, pipeline de filtro/ordenação,
workflow de status com rejeição em duas fases e gate de autorização.
"""

__version__ = "0.1.0"
