"""Adapters Django: armazenamento de documentos, eventos e Unit of Work."""
