"""In-memory key-value store with an optional byte quota."""

from typing import Optional

from fincache.core.exceptions import QuotaExceededError


class InMemoryKeyValueStore:
    """
    Dictionary-backed KeyValueStore.

    Usage is measured as the UTF-8 size of keys plus values; a write that would
    push usage past quota_bytes raises QuotaExceededError and changes nothing.
    """

    def __init__(self, quota_bytes: Optional[int] = None):
        self._quota = quota_bytes
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self._quota is not None:
            current = self._item_size(key, self._items[key]) if key in self._items else 0
            needed = self._item_size(key, value)
            available = self._quota - (self.used_bytes() - current)
            if needed > available:
                raise QuotaExceededError(requested=needed, available=available)
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)

    def used_bytes(self) -> int:
        return sum(self._item_size(k, v) for k, v in self._items.items())

    @staticmethod
    def _item_size(key: str, value: str) -> int:
        return len(key.encode("utf-8")) + len(value.encode("utf-8"))
