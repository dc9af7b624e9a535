"""Hybrid cache tier: local for speed, remote for durability."""

import asyncio
import logging
from dataclasses import asdict
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Mapping, Optional

from fincache.core.timezone import now_eastern
from fincache.domain.models import (
    CacheEntry,
    CacheOperationResult,
    CacheStatistics,
    CompanyFinancials,
)
from fincache.services.freshness import FreshnessPolicy
from fincache.strategies.base import CacheStorageStrategy

# Remote entries younger than this are pulled into the local tier on read
PROMOTION_THRESHOLD = timedelta(days=30)


def _settled(result: Any, default: Any, tier: str, operation: str, logger: logging.Logger) -> Any:
    """Unwrap one gather(return_exceptions=True) result, logging a failed tier."""
    if isinstance(result, BaseException):
        logger.warning("%s tier failed during %s: %s", tier, operation, result)
        return default
    return result


class HybridCacheStrategy:
    """
    Composes a local and a remote tier.

    Writes go to both tiers concurrently and succeed if either does; reads try
    local first and promote recent remote hits into the local tier.
    """

    def __init__(
        self,
        local: CacheStorageStrategy,
        remote: CacheStorageStrategy,
        promotion_threshold: timedelta = PROMOTION_THRESHOLD,
        policy: Optional[FreshnessPolicy] = None,
        clock: Callable[[], datetime] = now_eastern,
        logger: Optional[logging.Logger] = None,
    ):
        self._local = local
        self._remote = remote
        self._promotion_threshold = promotion_threshold
        self._clock = clock
        self._policy = policy or FreshnessPolicy(clock=clock)
        self._logger = logger or logging.getLogger(__name__)

    async def get(self, owner: str, symbol: str) -> Optional[CacheEntry]:
        entry = await self._guarded(self._local.get(owner, symbol), None, "local", "get")
        if entry is not None:
            self._logger.debug("Cache hit: %s from local tier", symbol)
            return entry

        entry = await self._guarded(self._remote.get(owner, symbol), None, "remote", "get")
        if entry is None:
            return None

        self._logger.debug("Cache hit: %s from remote tier", symbol)
        if self._should_promote(entry):
            result = await self._guarded(
                self._local.set(owner, symbol, entry.data, asdict(entry.metadata)),
                CacheOperationResult(success=False, error="local tier raised"),
                "local",
                "promotion",
            )
            if result.success:
                self._logger.debug("Promoted %s to local tier", symbol)
            else:
                self._logger.warning("Promotion of %s to local tier failed: %s", symbol, result.error)
        return entry

    async def set(
        self,
        owner: str,
        symbol: str,
        data: CompanyFinancials,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> CacheOperationResult:
        # Both tiers share one cached_at so their expiries line up
        overrides = {"cached_at": self._clock(), **(metadata or {})}
        local_result, remote_result = await asyncio.gather(
            self._local.set(owner, symbol, data, overrides),
            self._remote.set(owner, symbol, data, overrides),
            return_exceptions=True,
        )

        local_ok = isinstance(local_result, CacheOperationResult) and local_result.success
        remote_ok = isinstance(remote_result, CacheOperationResult) and remote_result.success

        if local_ok or remote_ok:
            if not (local_ok and remote_ok):
                failed, detail = ("local", local_result) if not local_ok else ("remote", remote_result)
                self._logger.warning("Cached %s in one tier only; %s tier failed: %s", symbol, failed, _error_of(detail))
            return CacheOperationResult(
                success=True,
                entry_id=local_result.entry_id if local_ok else remote_result.entry_id,
            )

        return CacheOperationResult(
            success=False,
            error=(
                "All cache tiers failed: "
                f"local: {_error_of(local_result)}; remote: {_error_of(remote_result)}"
            ),
        )

    async def remove(self, owner: str, symbol: str) -> bool:
        local_removed, remote_removed = await asyncio.gather(
            self._local.remove(owner, symbol),
            self._remote.remove(owner, symbol),
            return_exceptions=True,
        )
        return bool(
            _settled(local_removed, False, "local", "remove", self._logger)
            or _settled(remote_removed, False, "remote", "remove", self._logger)
        )

    async def clear(self, owner: str) -> int:
        local_count, remote_count = await asyncio.gather(
            self._local.clear(owner),
            self._remote.clear(owner),
            return_exceptions=True,
        )
        # Tiers overlap, so summing would double-count
        return max(
            _settled(local_count, 0, "local", "clear", self._logger),
            _settled(remote_count, 0, "remote", "clear", self._logger),
        )

    async def get_statistics(self, owner: str) -> CacheStatistics:
        local_stats, remote_stats = await asyncio.gather(
            self._local.get_statistics(owner),
            self._remote.get_statistics(owner),
            return_exceptions=True,
        )
        local = _settled(local_stats, CacheStatistics(), "local", "statistics", self._logger)
        remote = _settled(remote_stats, CacheStatistics(), "remote", "statistics", self._logger)

        return CacheStatistics(
            total_entries=local.total_entries + remote.total_entries,
            fresh_entries=local.fresh_entries + remote.fresh_entries,
            stale_entries=local.stale_entries + remote.stale_entries,
            total_size=local.total_size + remote.total_size,
            hit_ratio=(local.hit_ratio + remote.hit_ratio) / 2,
            average_age=(local.average_age + remote.average_age) / 2,
            newest_entry=local.newest_entry or remote.newest_entry,
            oldest_entry=local.oldest_entry or remote.oldest_entry,
        )

    async def is_fresh(self, owner: str, symbol: str) -> bool:
        if await self._guarded(self._local.is_fresh(owner, symbol), False, "local", "is_fresh"):
            return True
        return await self._guarded(self._remote.is_fresh(owner, symbol), False, "remote", "is_fresh")

    async def list_keys(self, owner: str) -> list[str]:
        local_keys, remote_keys = await asyncio.gather(
            self._local.list_keys(owner),
            self._remote.list_keys(owner),
            return_exceptions=True,
        )
        local = _settled(local_keys, [], "local", "list_keys", self._logger)
        remote = _settled(remote_keys, [], "remote", "list_keys", self._logger)
        return list(dict.fromkeys([*local, *remote]))

    async def optimize_distribution(self, owner: str) -> int:
        """
        Demote local entries that no longer meet the promotion criterion.

        Each such entry is written to the remote tier unless the remote copy is
        at least as recent, then removed locally. An entry is only dropped from
        the local tier once the remote tier holds it. Returns the number of
        entries demoted.
        """
        demoted = 0
        for symbol in await self._local.list_keys(owner):
            entry = await self._local.get(owner, symbol)
            if entry is None or self._should_promote(entry):
                continue

            remote_entry = await self._guarded(self._remote.get(owner, symbol), None, "remote", "get")
            if remote_entry is None or remote_entry.metadata.cached_at < entry.metadata.cached_at:
                result = await self._guarded(
                    self._remote.set(owner, symbol, entry.data, asdict(entry.metadata)),
                    CacheOperationResult(success=False, error="remote tier raised"),
                    "remote",
                    "demotion",
                )
                if not result.success:
                    self._logger.warning("Could not demote %s to remote tier: %s", symbol, result.error)
                    continue

            if await self._local.remove(owner, symbol):
                demoted += 1
                self._logger.info("Demoted %s from local tier to remote tier", symbol)
        return demoted

    async def _guarded(self, operation: Awaitable[Any], default: Any, tier: str, name: str) -> Any:
        try:
            return await operation
        except Exception as exc:
            return _settled(exc, default, tier, name, self._logger)

    def _should_promote(self, entry: CacheEntry) -> bool:
        now = self._clock()
        return entry.age(now) < self._promotion_threshold and not self._policy.is_expired(entry, now)


def _error_of(result: Any) -> str:
    if isinstance(result, BaseException):
        return str(result) or type(result).__name__
    return result.error or "unknown error"
