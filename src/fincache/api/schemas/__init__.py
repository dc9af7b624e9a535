"""Pydantic schemas for API request/response."""

from fincache.api.schemas.cache import (
    CompanyFinancialsResponse,
    RefreshRequest,
    OperationResultResponse,
    CacheStatisticsResponse,
    ClearCacheResponse,
    CachedSymbolsResponse,
    CacheStatusResponse,
    OptimizeResponse,
    CacheConfigResponse,
    CacheConfigUpdate,
)

__all__ = [
    "CompanyFinancialsResponse",
    "RefreshRequest",
    "OperationResultResponse",
    "CacheStatisticsResponse",
    "ClearCacheResponse",
    "CachedSymbolsResponse",
    "CacheStatusResponse",
    "OptimizeResponse",
    "CacheConfigResponse",
    "CacheConfigUpdate",
]
