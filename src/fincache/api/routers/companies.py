"""Company financials endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from fincache.api.deps import get_cache_service, get_owner
from fincache.api.schemas import CompanyFinancialsResponse
from fincache.domain.models import RefreshOptions
from fincache.services.financial_data_cache import FinancialDataCacheService

router = APIRouter(prefix="/companies", tags=["companies"])


@router.get("/{symbol}", response_model=CompanyFinancialsResponse)
async def get_company(
    symbol: str,
    force_refresh: bool = Query(False, description="Skip the cache and fetch fresh data"),
    background: Optional[bool] = Query(None, description="Allow a background refresh on a cache hit"),
    owner: str = Depends(get_owner),
    service: FinancialDataCacheService = Depends(get_cache_service),
) -> CompanyFinancialsResponse:
    """Get financial statements for a company, served from cache when fresh."""
    data = await service.get_company_data(
        owner,
        symbol,
        RefreshOptions(force_refresh=force_refresh, background=background),
    )
    return CompanyFinancialsResponse.model_validate(data)
