"""
App Django de armazenamento de documentos.

Persiste as coleções ("tickets", "users") em uma única tabela e
implementa o CollectionGateway com live queries via signals.
"""
