"""Remote cache tier backed by a durable per-owner document store."""

import json
import logging
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
from fincache.domain.models.cache import DEFAULT_TTL
from fincache.repositories.protocols import DocumentStore
from fincache.services.freshness import FreshnessPolicy
from fincache.strategies.base import HitCounter, build_statistics, byte_size


class RemoteCacheStrategy:
    """Durable tier; network and database errors never cross this boundary."""

    def __init__(
        self,
        store: DocumentStore,
        default_ttl: timedelta = DEFAULT_TTL,
        policy: Optional[FreshnessPolicy] = None,
        clock: Callable[[], datetime] = now_eastern,
        logger: Optional[logging.Logger] = None,
    ):
        self._store = store
        self._default_ttl = default_ttl
        self._clock = clock
        self._policy = policy or FreshnessPolicy(clock=clock)
        self._logger = logger or logging.getLogger(__name__)
        self._counter = HitCounter()

    async def get(self, owner: str, symbol: str) -> Optional[CacheEntry]:
        entry = await self._read(owner, symbol)
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
            await self._store.set_document(owner, symbol, entry.to_dict())
            self._logger.debug("Cached %s for %s in remote storage", symbol, owner)
            return CacheOperationResult(success=True, entry_id=entry.id)
        except Exception as exc:
            self._logger.warning("Remote cache write failed for %s/%s: %s", owner, symbol, exc)
            return CacheOperationResult(success=False, error=f"Remote storage write failed: {exc}")

    async def remove(self, owner: str, symbol: str) -> bool:
        try:
            await self._store.delete_document(owner, symbol)
            return True
        except Exception as exc:
            self._logger.warning("Remote cache remove failed for %s/%s: %s", owner, symbol, exc)
            return False

    async def clear(self, owner: str) -> int:
        try:
            removed = await self._store.delete_documents(owner)
            self._logger.info("Cleared %d remote cache entries for %s", removed, owner)
            return removed
        except Exception as exc:
            self._logger.warning("Remote cache clear failed for %s: %s", owner, exc)
            return 0

    async def get_statistics(self, owner: str) -> CacheStatistics:
        try:
            records = await self._owner_records(owner)
            return build_statistics(records, self._policy, self._clock(), self._counter.ratio(owner))
        except Exception as exc:
            self._logger.warning("Remote cache statistics failed for %s: %s", owner, exc)
            return CacheStatistics()

    async def is_fresh(self, owner: str, symbol: str) -> bool:
        entry = await self._read(owner, symbol)
        return entry is not None and self._policy.is_fresh(entry)

    async def list_keys(self, owner: str) -> list[str]:
        try:
            return [entry.symbol for entry, _ in await self._owner_records(owner)]
        except Exception as exc:
            self._logger.warning("Remote cache key listing failed for %s: %s", owner, exc)
            return []

    async def _read(self, owner: str, symbol: str) -> Optional[CacheEntry]:
        try:
            document = await self._store.get_document(owner, symbol)
            if document is None:
                return None
            if CacheEntry.stored_version(document) != CACHE_VERSION:
                self._logger.info("Purging remote cache entry %s/%s with outdated schema", owner, symbol)
                await self._store.delete_document(owner, symbol)
                return None
            return CacheEntry.from_dict(document)
        except Exception as exc:
            self._logger.warning("Remote cache read failed for %s/%s: %s", owner, symbol, exc)
            return None

    async def _owner_records(self, owner: str) -> list[tuple[CacheEntry, int]]:
        records = []
        documents = await self._store.list_documents(owner)
        for symbol, document in documents.items():
            if CacheEntry.stored_version(document) != CACHE_VERSION:
                continue
            try:
                entry = CacheEntry.from_dict(document)
            except (ValueError, KeyError, TypeError, AttributeError) as exc:
                self._logger.warning("Skipping unreadable remote cache entry %s/%s: %s", owner, symbol, exc)
                continue
            records.append((entry, byte_size(json.dumps(document))))
        return records
