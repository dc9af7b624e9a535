"""Domain models package."""

from fincache.domain.models.enums import DataSource, DetectionMethod, CacheTier
from fincache.domain.models.financials import (
    CompanyFinancials,
    IncomeStatement,
    BalanceSheet,
    CashFlowStatement,
)
from fincache.domain.models.cache import (
    CACHE_VERSION,
    CacheMetadata,
    CacheEntry,
    EarningsDetectionResult,
    CacheStatistics,
    CacheOperationResult,
    CacheConfig,
    RefreshOptions,
)

__all__ = [
    "DataSource",
    "DetectionMethod",
    "CacheTier",
    "CompanyFinancials",
    "IncomeStatement",
    "BalanceSheet",
    "CashFlowStatement",
    "CACHE_VERSION",
    "CacheMetadata",
    "CacheEntry",
    "EarningsDetectionResult",
    "CacheStatistics",
    "CacheOperationResult",
    "CacheConfig",
    "RefreshOptions",
]
