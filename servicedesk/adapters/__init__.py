"""
Adapters - Implementações dos Ports do Core.

Infraestrutura concreta (Django ORM, Celery) fica aqui; o Core
nunca importa deste pacote.
"""
