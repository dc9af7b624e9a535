"""Key-value store protocol for the local cache tier."""

from typing import Protocol, Optional


class KeyValueStore(Protocol):
    """
    Synchronous string store scoped to the running client.

    Writes may raise QuotaExceededError when the store is full.
    """

    def get_item(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key is absent."""
        ...

    def set_item(self, key: str, value: str) -> None:
        """Store a value, replacing any existing one."""
        ...

    def remove_item(self, key: str) -> None:
        """Remove a key. Removing an absent key is a no-op."""
        ...

    def keys(self) -> list[str]:
        """List every key currently stored."""
        ...
