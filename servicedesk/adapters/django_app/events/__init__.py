"""Publicação e processamento assíncrono de Domain Events."""
