"""Cache records, results and runtime policy."""

import uuid
from dataclasses import dataclass, field, fields
from datetime import datetime, timedelta
from typing import Any, Mapping, Optional

from fincache.core.exceptions import ValidationError
from fincache.core.timezone import parse_datetime_eastern
from fincache.domain.models.enums import DataSource, DetectionMethod
from fincache.domain.models.financials import CompanyFinancials

# Bump when the persisted entry layout changes; older records are purged on read.
CACHE_VERSION = "1.0.0"

DEFAULT_TTL = timedelta(days=90)
DEFAULT_MAX_AGE = timedelta(days=180)
DEFAULT_MAX_CACHE_SIZE = 50 * 1024 * 1024


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse(value: Optional[str]) -> Optional[datetime]:
    return parse_datetime_eastern(value) if value else None


@dataclass
class CacheMetadata:
    """Freshness and provenance data attached to a cache entry."""

    cached_at: datetime
    expires_at: datetime
    next_earnings_estimate: Optional[datetime] = None
    last_earnings_date: Optional[datetime] = None
    data_source: DataSource = DataSource.API
    schema_version: str = CACHE_VERSION

    @classmethod
    def create(
        cls,
        now: datetime,
        default_ttl: timedelta = DEFAULT_TTL,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> "CacheMetadata":
        """
        Build metadata for a new write.

        Defaults to cached_at=now and expires_at=now+default_ttl; any field in
        overrides replaces the default. Raises ValidationError on unknown
        fields or when the entry would expire before it was cached.
        """
        values: dict[str, Any] = {
            "cached_at": now,
            "expires_at": now + default_ttl,
            "data_source": DataSource.API,
            "schema_version": CACHE_VERSION,
        }
        if overrides:
            known = {f.name for f in fields(cls)}
            unknown = set(overrides) - known
            if unknown:
                raise ValidationError(f"Unknown cache metadata fields: {sorted(unknown)}")
            values.update(overrides)

        metadata = cls(**values)
        metadata.data_source = DataSource(metadata.data_source)
        if metadata.expires_at <= metadata.cached_at:
            raise ValidationError("Cache entry must expire after it was cached")
        return metadata

    def to_dict(self) -> dict[str, Any]:
        return {
            "cached_at": _iso(self.cached_at),
            "expires_at": _iso(self.expires_at),
            "next_earnings_estimate": _iso(self.next_earnings_estimate),
            "last_earnings_date": _iso(self.last_earnings_date),
            "data_source": self.data_source.value,
            "schema_version": self.schema_version,
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "CacheMetadata":
        return cls(
            cached_at=parse_datetime_eastern(raw["cached_at"]),
            expires_at=parse_datetime_eastern(raw["expires_at"]),
            next_earnings_estimate=_parse(raw.get("next_earnings_estimate")),
            last_earnings_date=_parse(raw.get("last_earnings_date")),
            data_source=DataSource(raw.get("data_source", DataSource.API.value)),
            schema_version=raw.get("schema_version", ""),
        )


@dataclass
class CacheEntry:
    """
    One cached financial bundle for one (owner, symbol) pair.

    Entries are addressed by a key derived from owner and symbol, never by identity.
    """

    owner: str
    symbol: str
    data: CompanyFinancials
    metadata: CacheMetadata
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def age(self, now: datetime) -> timedelta:
        return now - self.metadata.cached_at

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "owner": self.owner,
            "symbol": self.symbol,
            "data": self.data.to_dict(),
            "metadata": self.metadata.to_dict(),
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "CacheEntry":
        return cls(
            id=raw["id"],
            owner=raw["owner"],
            symbol=raw["symbol"],
            data=CompanyFinancials.from_dict(raw["data"]),
            metadata=CacheMetadata.from_dict(raw["metadata"]),
        )

    @staticmethod
    def stored_version(raw: Mapping[str, Any]) -> Optional[str]:
        """Read the schema version of a persisted record without parsing the rest."""
        metadata = raw.get("metadata")
        if not isinstance(metadata, Mapping):
            return None
        return metadata.get("schema_version")


@dataclass
class EarningsDetectionResult:
    """Output of the earnings pattern analyzer. Derived on every refresh, never stored."""

    confidence: float
    method: DetectionMethod
    next_earnings_date: Optional[datetime] = None
    last_earnings_date: Optional[datetime] = None
    quarterly_pattern: Optional[bool] = None


@dataclass
class CacheStatistics:
    """Aggregated cache health for one owner, recomputed on every request."""

    total_entries: int = 0
    fresh_entries: int = 0
    stale_entries: int = 0
    total_size: int = 0
    hit_ratio: float = 0.0
    average_age: float = 0.0  # hours
    newest_entry: Optional[str] = None
    oldest_entry: Optional[str] = None


@dataclass
class CacheOperationResult:
    """Outcome of a cache write or refresh."""

    success: bool
    entry_id: Optional[str] = None
    error: Optional[str] = None
    from_cache: bool = False


@dataclass
class CacheConfig:
    """Runtime-tunable cache policy."""

    default_ttl: timedelta = DEFAULT_TTL
    max_cache_size: int = DEFAULT_MAX_CACHE_SIZE
    use_local_storage: bool = True
    use_remote_storage: bool = True
    enable_compression: bool = False
    max_age: timedelta = DEFAULT_MAX_AGE
    enable_background_refresh: bool = True
    background_refresh_delay: float = 1.0  # seconds

    @classmethod
    def from_settings(cls, settings) -> "CacheConfig":
        """Build the initial policy from application Settings."""
        return cls(
            default_ttl=timedelta(days=settings.cache_default_ttl_days),
            max_cache_size=settings.cache_max_size_bytes,
            use_local_storage=settings.cache_use_local_storage,
            use_remote_storage=settings.cache_use_remote_storage,
            enable_compression=settings.cache_enable_compression,
            max_age=timedelta(days=settings.cache_max_age_days),
            enable_background_refresh=settings.cache_enable_background_refresh,
            background_refresh_delay=settings.cache_background_refresh_delay_seconds,
        )


@dataclass
class RefreshOptions:
    """Per-call options for reads and refreshes."""

    force_refresh: bool = False
    metadata_only: bool = False
    # None defers to CacheConfig.enable_background_refresh
    background: Optional[bool] = None
    custom_ttl: Optional[timedelta] = None
    timeout: Optional[float] = None  # seconds, bounds the upstream fetch
