"""Repository protocol definitions (interfaces)."""

from fincache.repositories.protocols.key_value_store import KeyValueStore
from fincache.repositories.protocols.document_store import DocumentStore

__all__ = [
    "KeyValueStore",
    "DocumentStore",
]
