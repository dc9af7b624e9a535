"""Cache management endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from fincache.api.deps import get_cache_service, get_owner
from fincache.api.schemas import (
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
from fincache.domain.models import CacheConfig, RefreshOptions
from fincache.services.financial_data_cache import FinancialDataCacheService

router = APIRouter(prefix="/cache", tags=["cache"])


def _config_response(config: CacheConfig) -> CacheConfigResponse:
    return CacheConfigResponse(
        default_ttl_days=config.default_ttl.total_seconds() / 86400,
        max_cache_size=config.max_cache_size,
        use_local_storage=config.use_local_storage,
        use_remote_storage=config.use_remote_storage,
        enable_compression=config.enable_compression,
        max_age_days=config.max_age.total_seconds() / 86400,
        enable_background_refresh=config.enable_background_refresh,
        background_refresh_delay=config.background_refresh_delay,
    )


@router.post("/{symbol}/refresh", response_model=OperationResultResponse)
async def refresh_cache(
    symbol: str,
    data: Optional[RefreshRequest] = None,
    owner: str = Depends(get_owner),
    service: FinancialDataCacheService = Depends(get_cache_service),
) -> OperationResultResponse:
    """Refresh one cached company, optionally only its earnings metadata."""
    data = data or RefreshRequest()
    result = await service.refresh_cache(
        owner,
        symbol,
        RefreshOptions(
            force_refresh=data.force_refresh,
            metadata_only=data.metadata_only,
            custom_ttl=data.custom_ttl,
        ),
    )
    return OperationResultResponse.model_validate(result)


@router.get("/statistics", response_model=CacheStatisticsResponse)
async def get_statistics(
    owner: str = Depends(get_owner),
    service: FinancialDataCacheService = Depends(get_cache_service),
) -> CacheStatisticsResponse:
    """Get cache statistics for the owner."""
    stats = await service.get_cache_statistics(owner)
    return CacheStatisticsResponse.model_validate(stats)


@router.delete("", response_model=ClearCacheResponse)
async def clear_cache(
    symbol: Optional[str] = Query(None, description="Clear only this symbol"),
    owner: str = Depends(get_owner),
    service: FinancialDataCacheService = Depends(get_cache_service),
) -> ClearCacheResponse:
    """Clear one symbol or every cached entry of the owner."""
    cleared = await service.clear_cache(owner, symbol)
    return ClearCacheResponse(cleared=cleared)


@router.get("/symbols", response_model=CachedSymbolsResponse)
async def list_symbols(
    owner: str = Depends(get_owner),
    service: FinancialDataCacheService = Depends(get_cache_service),
) -> CachedSymbolsResponse:
    return CachedSymbolsResponse(symbols=await service.get_cached_symbols(owner))


@router.get("/{symbol}/status", response_model=CacheStatusResponse)
async def get_status(
    symbol: str,
    owner: str = Depends(get_owner),
    service: FinancialDataCacheService = Depends(get_cache_service),
) -> CacheStatusResponse:
    """Check whether fresh data is cached for a symbol."""
    return CacheStatusResponse(
        symbol=symbol.strip().upper(),
        cached=await service.is_cached(owner, symbol),
    )


@router.post("/optimize", response_model=OptimizeResponse)
async def optimize(
    owner: str = Depends(get_owner),
    service: FinancialDataCacheService = Depends(get_cache_service),
) -> OptimizeResponse:
    """Move aging entries out of the local tier (hybrid storage only)."""
    return OptimizeResponse(demoted=await service.optimize_distribution(owner))


@router.get("/config", response_model=CacheConfigResponse)
async def get_config(
    service: FinancialDataCacheService = Depends(get_cache_service),
) -> CacheConfigResponse:
    return _config_response(service.get_config())


@router.patch("/config", response_model=CacheConfigResponse)
async def update_config(
    data: CacheConfigUpdate,
    service: FinancialDataCacheService = Depends(get_cache_service),
) -> CacheConfigResponse:
    """Update the live cache configuration."""
    service.update_config(**data.to_changes())
    return _config_response(service.get_config())
