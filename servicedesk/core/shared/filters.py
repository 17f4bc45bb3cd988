"""Convenções comuns dos filtros de lista (tickets e usuários)."""

from typing import Optional

# Valor usado pelos seletores de UI para "sem filtro"
ALL = "all"


def is_unconstrained(value: Optional[str]) -> bool:
    """None, string vazia e "all" significam "sem restrição"."""
    return value is None or value == "" or value == ALL
