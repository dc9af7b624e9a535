"""Document store protocol for the remote cache tier."""

from typing import Any, Protocol, Optional


class DocumentStore(Protocol):
    """
    Durable per-owner document collections, one document per symbol.

    All operations may fail with network, permission or database errors.
    """

    async def get_document(self, owner: str, symbol: str) -> Optional[dict[str, Any]]:
        """Get one document, or None if it does not exist."""
        ...

    async def set_document(self, owner: str, symbol: str, document: dict[str, Any]) -> None:
        """Create or replace a document."""
        ...

    async def delete_document(self, owner: str, symbol: str) -> None:
        """Delete one document. Deleting a missing document is a no-op."""
        ...

    async def list_documents(self, owner: str) -> dict[str, dict[str, Any]]:
        """Return every document of an owner keyed by symbol."""
        ...

    async def delete_documents(self, owner: str) -> int:
        """Atomically delete all documents of an owner, returning how many were removed."""
        ...
