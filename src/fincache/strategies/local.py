"""Local cache tier backed by a size-bounded key-value store."""

import base64
import json
import logging
import zlib
from datetime import datetime, timedelta
from typing import Any, Callable, Mapping, Optional

from fincache.core.timezone import now_eastern
from fincache.domain.models import (
    CACHE_VERSION,
    CacheEntry,
    CacheMetadata,
    CacheOperationResult,
    CacheStatistics,
    CompanyFinancials,
)
from fincache.domain.models.cache import DEFAULT_MAX_CACHE_SIZE, DEFAULT_TTL
from fincache.repositories.protocols import KeyValueStore
from fincache.services.freshness import FreshnessPolicy
from fincache.strategies.base import (
    HitCounter,
    build_statistics,
    byte_size,
    cache_key,
    owner_prefix,
)

_COMPRESSED_PREFIX = "zlib:"
# Cleanup stops once projected usage falls below this share of max_size
CLEANUP_TARGET_RATIO = 0.8


class LocalCacheStrategy:
    """
    Fast client-side tier.

    Every store error (quota, corrupt JSON) is logged and turned into a miss
    or a failed result.
    """

    def __init__(
        self,
        store: KeyValueStore,
        max_size: int = DEFAULT_MAX_CACHE_SIZE,
        enable_compression: bool = False,
        default_ttl: timedelta = DEFAULT_TTL,
        policy: Optional[FreshnessPolicy] = None,
        clock: Callable[[], datetime] = now_eastern,
        logger: Optional[logging.Logger] = None,
    ):
        self._store = store
        self._max_size = max_size
        self._enable_compression = enable_compression
        self._default_ttl = default_ttl
        self._clock = clock
        self._policy = policy or FreshnessPolicy(clock=clock)
        self._logger = logger or logging.getLogger(__name__)
        self._counter = HitCounter()

    async def get(self, owner: str, symbol: str) -> Optional[CacheEntry]:
        entry = self._read(owner, symbol)
        if entry is None:
            self._counter.miss(owner)
            return None
        self._counter.hit(owner)
        return entry

    async def set(
        self,
        owner: str,
        symbol: str,
        data: CompanyFinancials,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> CacheOperationResult:
        try:
            entry = CacheEntry(
                owner=owner,
                symbol=symbol,
                data=data,
                metadata=CacheMetadata.create(self._clock(), self._default_ttl, metadata),
            )
            encoded = self._encode(json.dumps(entry.to_dict()))
            size = byte_size(encoded)
            if size > self._max_size:
                return CacheOperationResult(
                    success=False,
                    error=(
                        f"Entry too large for local storage: size {size} bytes "
                        f"exceeds limit of {self._max_size} bytes"
                    ),
                )

            self._cleanup_if_needed(owner, size)
            self._store.set_item(cache_key(owner, symbol), encoded)
            self._logger.debug("Cached %s for %s in local storage (%d bytes)", symbol, owner, size)
            return CacheOperationResult(success=True, entry_id=entry.id)
        except Exception as exc:
            self._logger.warning("Local cache write failed for %s/%s: %s", owner, symbol, exc)
            return CacheOperationResult(success=False, error=f"Local storage write failed: {exc}")

    async def remove(self, owner: str, symbol: str) -> bool:
        try:
            self._store.remove_item(cache_key(owner, symbol))
            return True
        except Exception as exc:
            self._logger.warning("Local cache remove failed for %s/%s: %s", owner, symbol, exc)
            return False

    async def clear(self, owner: str) -> int:
        removed = 0
        try:
            for key in self._owner_keys(owner):
                self._store.remove_item(key)
                removed += 1
            self._logger.info("Cleared %d local cache entries for %s", removed, owner)
        except Exception as exc:
            self._logger.warning("Local cache clear failed for %s: %s", owner, exc)
        return removed

    async def get_statistics(self, owner: str) -> CacheStatistics:
        try:
            records = self._owner_records(owner)
            return build_statistics(records, self._policy, self._clock(), self._counter.ratio(owner))
        except Exception as exc:
            self._logger.warning("Local cache statistics failed for %s: %s", owner, exc)
            return CacheStatistics()

    async def is_fresh(self, owner: str, symbol: str) -> bool:
        entry = self._read(owner, symbol)
        return entry is not None and self._policy.is_fresh(entry)

    async def list_keys(self, owner: str) -> list[str]:
        try:
            return [entry.symbol for entry, _ in self._owner_records(owner)]
        except Exception as exc:
            self._logger.warning("Local cache key listing failed for %s: %s", owner, exc)
            return []

    # Internal helpers

    def _read(self, owner: str, symbol: str) -> Optional[CacheEntry]:
        key = cache_key(owner, symbol)
        try:
            stored = self._store.get_item(key)
            if stored is None:
                return None
            return self._parse(key, stored, owner, purge=True)
        except Exception as exc:
            self._logger.warning("Local cache read failed for %s/%s: %s", owner, symbol, exc)
            return None

    def _parse(self, key: str, stored: str, owner: str, purge: bool) -> Optional[CacheEntry]:
        raw = json.loads(self._decode(stored))
        if CacheEntry.stored_version(raw) != CACHE_VERSION:
            if purge:
                self._logger.info("Purging local cache entry %s with outdated schema", key)
                self._store.remove_item(key)
            return None
        entry = CacheEntry.from_dict(raw)
        return entry if entry.owner == owner else None

    def _owner_keys(self, owner: str) -> list[str]:
        prefix = owner_prefix(owner)
        return [key for key in self._store.keys() if key.startswith(prefix)]

    def _owner_records(self, owner: str) -> list[tuple[CacheEntry, int]]:
        records = []
        for key in self._owner_keys(owner):
            stored = self._store.get_item(key)
            if stored is None:
                continue
            try:
                entry = self._parse(key, stored, owner, purge=False)
            except (ValueError, KeyError, TypeError, AttributeError, zlib.error) as exc:
                self._logger.warning("Skipping unreadable local cache entry %s: %s", key, exc)
                continue
            if entry is not None:
                records.append((entry, byte_size(stored)))
        return records

    def _cleanup_if_needed(self, owner: str, new_entry_size: int) -> None:
        """Evict the owner's stale entries when the write would exceed max_size."""
        records = self._owner_records(owner)
        projected = sum(size for _, size in records) + new_entry_size
        if projected <= self._max_size:
            return

        freed = 0
        now = self._clock()
        for entry, size in records:
            if self._policy.is_fresh(entry, now=now):
                continue
            self._store.remove_item(cache_key(owner, entry.symbol))
            freed += size
            if projected - freed < self._max_size * CLEANUP_TARGET_RATIO:
                break

        self._logger.info("Evicted %d bytes of stale local cache entries for %s", freed, owner)

    def _encode(self, serialized: str) -> str:
        if not self._enable_compression:
            return serialized
        compressed = zlib.compress(serialized.encode("utf-8"))
        return _COMPRESSED_PREFIX + base64.b64encode(compressed).decode("ascii")

    @staticmethod
    def _decode(stored: str) -> str:
        if not stored.startswith(_COMPRESSED_PREFIX):
            return stored
        compressed = base64.b64decode(stored[len(_COMPRESSED_PREFIX):])
        return zlib.decompress(compressed).decode("utf-8")
