"""Cache storage strategy protocol and helpers shared by the tiers."""

from collections import Counter
from datetime import datetime
from typing import Any, Mapping, Optional, Protocol
from urllib.parse import quote

from fincache.domain.models import (
    CacheEntry,
    CacheOperationResult,
    CacheStatistics,
    CompanyFinancials,
)
from fincache.services.freshness import FreshnessPolicy

KEY_PREFIX = "financial_cache_"


class CacheStorageStrategy(Protocol):
    """
    Interface shared by the local, remote and hybrid cache tiers.

    A miss is a None/False/0 result, never an exception; store failures are
    logged and converted to the same safe defaults.
    """

    async def get(self, owner: str, symbol: str) -> Optional[CacheEntry]:
        """Get the entry for (owner, symbol), or None on a miss."""
        ...

    async def set(
        self,
        owner: str,
        symbol: str,
        data: CompanyFinancials,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> CacheOperationResult:
        """Store data; metadata fields override the defaults."""
        ...

    async def remove(self, owner: str, symbol: str) -> bool:
        """Remove one entry."""
        ...

    async def clear(self, owner: str) -> int:
        """Remove every entry of an owner, returning how many were removed."""
        ...

    async def get_statistics(self, owner: str) -> CacheStatistics:
        """Compute statistics over an owner's entries."""
        ...

    async def is_fresh(self, owner: str, symbol: str) -> bool:
        """Check whether an entry exists and passes the freshness policy."""
        ...

    async def list_keys(self, owner: str) -> list[str]:
        """List the symbols cached for an owner."""
        ...


def owner_prefix(owner: str) -> str:
    """Key prefix for one owner; quoting keeps one owner's prefix from matching another's keys."""
    return f"{KEY_PREFIX}{quote(owner, safe='')}:"


def cache_key(owner: str, symbol: str) -> str:
    return f"{owner_prefix(owner)}{symbol}"


def byte_size(value: str) -> int:
    return len(value.encode("utf-8"))


class HitCounter:
    """Per-owner cache hit and miss counts, kept in memory."""

    def __init__(self):
        self._hits: Counter[str] = Counter()
        self._misses: Counter[str] = Counter()

    def hit(self, owner: str) -> None:
        self._hits[owner] += 1

    def miss(self, owner: str) -> None:
        self._misses[owner] += 1

    def ratio(self, owner: str) -> float:
        total = self._hits[owner] + self._misses[owner]
        return self._hits[owner] / total if total else 0.0


def build_statistics(
    records: list[tuple[CacheEntry, int]],
    policy: FreshnessPolicy,
    now: datetime,
    hit_ratio: float = 0.0,
) -> CacheStatistics:
    """Aggregate (entry, stored size) pairs into CacheStatistics."""
    if not records:
        return CacheStatistics(hit_ratio=hit_ratio)

    fresh = sum(1 for entry, _ in records if policy.is_fresh(entry, now=now))
    ages = [entry.age(now).total_seconds() / 3600 for entry, _ in records]
    by_cached_at = sorted(records, key=lambda r: r[0].metadata.cached_at)

    return CacheStatistics(
        total_entries=len(records),
        fresh_entries=fresh,
        stale_entries=len(records) - fresh,
        total_size=sum(size for _, size in records),
        hit_ratio=hit_ratio,
        average_age=sum(ages) / len(ages),
        newest_entry=by_cached_at[-1][0].symbol,
        oldest_entry=by_cached_at[0][0].symbol,
    )
