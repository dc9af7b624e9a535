"""Financial data cache orchestrator."""

import asyncio
import logging
from dataclasses import asdict, fields, replace
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from fincache.core.exceptions import AppError, DataSourceError, ValidationError
from fincache.core.timezone import now_eastern
from fincache.domain.models import (
    CacheConfig,
    CacheOperationResult,
    CacheStatistics,
    CacheTier,
    CompanyFinancials,
    DataSource,
    DetectionMethod,
    EarningsDetectionResult,
    RefreshOptions,
)
from fincache.providers.financial_data_provider import FinancialDataProvider
from fincache.repositories.protocols import DocumentStore, KeyValueStore
from fincache.services.earnings_detection import EarningsPatternAnalyzer, is_earnings_season
from fincache.services.freshness import FreshnessPolicy
from fincache.strategies.base import CacheStorageStrategy
from fincache.strategies.factory import create_cache_strategy
from fincache.strategies.hybrid import HybridCacheStrategy

HIGH_CONFIDENCE = 0.7
PATTERN_CONFIDENCE = 0.5
MIN_EARNINGS_TTL = timedelta(days=7)
QUARTERLY_TTL_FACTOR = 1.2
EARNINGS_SEASON_MAX_TTL = timedelta(days=14)

# Config changes that require a new storage strategy
_STRATEGY_FIELDS = {"use_local_storage", "use_remote_storage", "max_cache_size", "enable_compression"}

# Accepted value types per CacheConfig field
_CONFIG_TYPES: dict[str, Any] = {
    "default_ttl": timedelta,
    "max_cache_size": int,
    "use_local_storage": bool,
    "use_remote_storage": bool,
    "enable_compression": bool,
    "max_age": timedelta,
    "enable_background_refresh": bool,
    "background_refresh_delay": (int, float),
}


def _normalize_symbol(symbol: Optional[str]) -> str:
    return (symbol or "").strip().upper()


def _check_config_value(key: str, value: Any) -> None:
    expected = _CONFIG_TYPES[key]
    # bool is an int subclass; only bool fields take bools
    if isinstance(value, bool) != (expected is bool) or not isinstance(value, expected):
        raise ValidationError(f"Invalid value for cache config field {key}: {value!r}")
    if isinstance(value, timedelta) and value <= timedelta(0):
        raise ValidationError(f"Cache config field {key} must be a positive duration")
    if key in ("max_cache_size", "background_refresh_delay") and value < 0:
        raise ValidationError(f"Cache config field {key} must not be negative")


class FinancialDataCacheService:
    """
    Single entry point for cached company financials.

    Owns the active storage strategy and the mutable CacheConfig. Reads are
    served from cache while the freshness policy allows it; otherwise data is
    fetched from the provider, analyzed for earnings cadence and written back
    with an earnings-aware expiry.
    """

    def __init__(
        self,
        provider: FinancialDataProvider,
        local_store: KeyValueStore,
        document_store: DocumentStore,
        config: Optional[CacheConfig] = None,
        analyzer: Optional[EarningsPatternAnalyzer] = None,
        policy: Optional[FreshnessPolicy] = None,
        clock: Callable[[], datetime] = now_eastern,
        logger: Optional[logging.Logger] = None,
    ):
        self._provider = provider
        self._local_store = local_store
        self._document_store = document_store
        self._config = config or CacheConfig()
        self._clock = clock
        self._analyzer = analyzer or EarningsPatternAnalyzer(clock=clock)
        self._policy = policy or FreshnessPolicy(clock=clock)
        self._logger = logger or logging.getLogger(__name__)

        self._strategy = self._build_strategy()
        self._background_keys: set[str] = set()
        self._background_tasks: set[asyncio.Task] = set()

    @property
    def strategy(self) -> CacheStorageStrategy:
        return self._strategy

    # Reads and refreshes

    async def get_company_data(
        self,
        owner: str,
        symbol: str,
        options: Optional[RefreshOptions] = None,
    ) -> CompanyFinancials:
        """
        Return financials for a symbol, from cache when fresh.

        Raises:
            ValidationError: If owner or symbol is missing
            DataSourceError: If the data had to be fetched and the fetch failed
        """
        options = options or RefreshOptions()
        symbol = self._validate(owner, symbol)

        if options.force_refresh:
            return await self._fetch_and_cache(owner, symbol, options)

        entry = await self._strategy.get(owner, symbol)
        if entry is not None:
            if self._policy.is_fresh(entry):
                self._logger.debug("Cache hit for %s (%s)", symbol, owner)
                if self._config.enable_background_refresh and options.background is not False:
                    self._schedule_background_refresh(owner, symbol, options)
                return entry.data
            self._logger.info("Cache stale for %s, fetching fresh data", symbol)

        return await self._fetch_and_cache(owner, symbol, options)

    async def refresh_cache(
        self,
        owner: str,
        symbol: str,
        options: Optional[RefreshOptions] = None,
    ) -> CacheOperationResult:
        """
        Refresh one cached entry; errors are returned, never raised.

        In metadata-only mode the cached data is re-analyzed and its earnings
        metadata rewritten without contacting the provider; custom_ttl, if
        given, sets a new expiry counted from now.
        """
        options = options or RefreshOptions()
        try:
            symbol = self._validate(owner, symbol)
            self._logger.info("Refreshing cache for %s (%s)", symbol, owner)

            if options.metadata_only:
                return await self._refresh_metadata(owner, symbol, options)

            await self._fetch_and_cache(owner, symbol, options)
            return CacheOperationResult(success=True, from_cache=False)
        except AppError as exc:
            self._logger.warning("Cache refresh failed for %s/%s: %s", owner, symbol, exc.message)
            return CacheOperationResult(success=False, error=exc.message)
        except Exception as exc:
            self._logger.warning("Cache refresh failed for %s/%s: %s", owner, symbol, exc)
            return CacheOperationResult(success=False, error=str(exc))

    # Introspection

    async def get_cache_statistics(self, owner: str) -> CacheStatistics:
        try:
            if not owner:
                raise ValidationError("User ID is required for cache statistics")
            return await self._strategy.get_statistics(owner)
        except Exception as exc:
            self._logger.warning("Could not compute cache statistics for %s: %s", owner, exc)
            return CacheStatistics()

    async def clear_cache(self, owner: str, symbol: Optional[str] = None) -> int:
        """Remove one symbol or all of the owner's entries; returns how many were removed."""
        try:
            if not owner:
                raise ValidationError("User ID is required for cache operations")
            if symbol:
                symbol = _normalize_symbol(symbol)
                # Tier removes report success for absent keys too
                present = symbol in await self._strategy.list_keys(owner)
                removed = await self._strategy.remove(owner, symbol)
                cleared = 1 if removed and present else 0
            else:
                cleared = await self._strategy.clear(owner)
            self._logger.info("Cleared %d cache entries for %s", cleared, owner)
            return cleared
        except Exception as exc:
            self._logger.warning("Could not clear cache for %s: %s", owner, exc)
            return 0

    async def get_cached_symbols(self, owner: str) -> list[str]:
        try:
            if not owner:
                return []
            return await self._strategy.list_keys(owner)
        except Exception as exc:
            self._logger.warning("Could not list cached symbols for %s: %s", owner, exc)
            return []

    async def is_cached(self, owner: str, symbol: str) -> bool:
        try:
            if not owner or not symbol:
                return False
            return await self._strategy.is_fresh(owner, _normalize_symbol(symbol))
        except Exception as exc:
            self._logger.warning("Could not check cache for %s/%s: %s", owner, symbol, exc)
            return False

    async def optimize_distribution(self, owner: str) -> int:
        """Demote aging local entries to the remote tier. No-op unless the strategy is hybrid."""
        if not owner or not isinstance(self._strategy, HybridCacheStrategy):
            return 0
        try:
            return await self._strategy.optimize_distribution(owner)
        except Exception as exc:
            self._logger.warning("Could not optimize cache distribution for %s: %s", owner, exc)
            return 0

    # Configuration

    def get_config(self) -> CacheConfig:
        return replace(self._config)

    def update_config(self, **changes: Any) -> None:
        """
        Merge changes into the live config.

        Raises:
            ValidationError: On unknown keys, values of the wrong type or when both tiers would be disabled
        """
        known = {f.name for f in fields(CacheConfig)}
        unknown = set(changes) - known
        if unknown:
            raise ValidationError(f"Unknown cache config fields: {sorted(unknown)}")
        for key, value in changes.items():
            _check_config_value(key, value)

        use_local = changes.get("use_local_storage", self._config.use_local_storage)
        use_remote = changes.get("use_remote_storage", self._config.use_remote_storage)
        if not use_local and not use_remote:
            raise ValidationError("At least one cache tier must be enabled")

        rebuild = any(
            key in _STRATEGY_FIELDS and getattr(self._config, key) != value
            for key, value in changes.items()
        )
        for key, value in changes.items():
            setattr(self._config, key, value)

        if rebuild:
            self._strategy = self._build_strategy()
            self._logger.info(
                "Cache strategy rebuilt for tier %s",
                CacheTier.from_flags(use_local, use_remote).value,
            )

    # Earnings-aware expiry

    def analyze_earnings(self, data: CompanyFinancials) -> EarningsDetectionResult:
        try:
            return self._analyzer.analyze(data.filing_dates())
        except Exception as exc:
            self._logger.warning("Earnings analysis failed for %s: %s", data.symbol, exc)
            return EarningsDetectionResult(confidence=0.0, method=DetectionMethod.UNKNOWN)

    def calculate_intelligent_ttl(self, result: EarningsDetectionResult) -> timedelta:
        """
        Pick a TTL from the earnings analysis.

        A confident upcoming earnings date pulls expiry to shortly before it
        (never under 7 days). A confident quarterly cadence stretches the TTL
        by 20%. During earnings season the TTL is capped at 14 days. The result
        never exceeds max_age.
        """
        now = self._clock()
        ttl = self._config.default_ttl

        if result.next_earnings_date is not None and result.confidence > HIGH_CONFIDENCE:
            until_earnings = result.next_earnings_date - now
            if until_earnings > timedelta(0):
                days_to_earnings = until_earnings.total_seconds() / 86400
                buffer_days = min(7.0, max(1.0, days_to_earnings * 0.1))
                ttl = max(MIN_EARNINGS_TTL, timedelta(days=days_to_earnings - buffer_days))

        if result.quarterly_pattern and result.confidence > PATTERN_CONFIDENCE:
            ttl = min(ttl * QUARTERLY_TTL_FACTOR, self._config.max_age)

        if is_earnings_season(now):
            ttl = min(ttl, EARNINGS_SEASON_MAX_TTL)

        ttl = min(ttl, self._config.max_age)
        self._logger.debug(
            "Intelligent TTL %.1f days (confidence %.2f, quarterly %s)",
            ttl.total_seconds() / 86400,
            result.confidence,
            result.quarterly_pattern,
        )
        return ttl

    # Background refresh

    async def wait_for_background_refreshes(self) -> None:
        """Wait for every scheduled background refresh to finish."""
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    def _schedule_background_refresh(self, owner: str, symbol: str, options: RefreshOptions) -> None:
        key = f"{owner}:{symbol}"
        if key in self._background_keys:
            return

        self._background_keys.add(key)
        task = asyncio.create_task(self._background_refresh(key, owner, symbol, options))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _background_refresh(self, key: str, owner: str, symbol: str, options: RefreshOptions) -> None:
        try:
            await asyncio.sleep(self._config.background_refresh_delay)
            result = await self.refresh_cache(
                owner,
                symbol,
                replace(options, force_refresh=False, metadata_only=False, background=True),
            )
            if result.success:
                self._logger.debug("Background refresh completed for %s", symbol)
            else:
                self._logger.warning("Background refresh failed for %s: %s", symbol, result.error)
        finally:
            self._background_keys.discard(key)

    # Internal helpers

    def _validate(self, owner: str, symbol: str) -> str:
        if not owner:
            raise ValidationError("User ID is required for cache operations")
        normalized = _normalize_symbol(symbol)
        if not normalized:
            raise ValidationError("Symbol is required for cache operations")
        return normalized

    def _build_strategy(self) -> CacheStorageStrategy:
        tier = CacheTier.from_flags(self._config.use_local_storage, self._config.use_remote_storage)
        return create_cache_strategy(
            tier,
            local_store=self._local_store,
            document_store=self._document_store,
            config=self._config,
            policy=self._policy,
            clock=self._clock,
            logger=self._logger,
        )

    async def _fetch(self, symbol: str, timeout: Optional[float]) -> CompanyFinancials:
        try:
            if timeout is None:
                return await self._provider.fetch_financials(symbol)
            return await asyncio.wait_for(self._provider.fetch_financials(symbol), timeout)
        except DataSourceError:
            raise
        except asyncio.TimeoutError as exc:
            raise DataSourceError(f"Timed out fetching financials for {symbol} after {timeout}s") from exc
        except Exception as exc:
            raise DataSourceError(f"Failed to fetch financials for {symbol}: {exc}") from exc

    async def _fetch_and_cache(self, owner: str, symbol: str, options: RefreshOptions) -> CompanyFinancials:
        data = await self._fetch(symbol, options.timeout)

        earnings = self.analyze_earnings(data)
        ttl = options.custom_ttl or self.calculate_intelligent_ttl(earnings)
        now = self._clock()
        metadata = {
            "cached_at": now,
            "expires_at": now + ttl,
            "next_earnings_estimate": earnings.next_earnings_date,
            "last_earnings_date": earnings.last_earnings_date,
            "data_source": DataSource.API,
        }

        try:
            result = await self._strategy.set(owner, symbol, data, metadata)
            if result.success:
                self._logger.info(
                    "Cached fresh data for %s (ttl %.1f days, earnings confidence %.2f)",
                    symbol,
                    ttl.total_seconds() / 86400,
                    earnings.confidence,
                )
            else:
                self._logger.warning("Could not cache fresh data for %s: %s", symbol, result.error)
        except Exception as exc:
            self._logger.warning("Could not cache fresh data for %s: %s", symbol, exc)

        return data

    async def _refresh_metadata(self, owner: str, symbol: str, options: RefreshOptions) -> CacheOperationResult:
        entry = await self._strategy.get(owner, symbol)
        if entry is None:
            return CacheOperationResult(success=False, error="No cached data found to update metadata")

        earnings = self.analyze_earnings(entry.data)
        metadata = asdict(entry.metadata)
        metadata["next_earnings_estimate"] = earnings.next_earnings_date
        metadata["last_earnings_date"] = earnings.last_earnings_date
        if options.custom_ttl is not None:
            metadata["expires_at"] = self._clock() + options.custom_ttl

        return await self._strategy.set(owner, symbol, entry.data, metadata)
