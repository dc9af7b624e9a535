"""Pydantic schemas for cache endpoints."""

from datetime import timedelta
from typing import Optional

from pydantic import BaseModel, Field


class IncomeStatementResponse(BaseModel):
    model_config = {"from_attributes": True}

    date: str
    revenue: float
    operating_income: float
    net_income: float
    eps: float
    shares_outstanding: float
    gross_profit: Optional[float] = None
    ebitda: Optional[float] = None
    interest_expense: Optional[float] = None
    income_tax_expense: Optional[float] = None


class BalanceSheetResponse(BaseModel):
    model_config = {"from_attributes": True}

    date: str
    total_assets: float
    total_liabilities: float
    total_equity: float
    book_value_per_share: float
    current_assets: Optional[float] = None
    cash_and_equivalents: Optional[float] = None
    current_liabilities: Optional[float] = None
    long_term_debt: Optional[float] = None
    goodwill: Optional[float] = None
    intangible_assets: Optional[float] = None


class CashFlowStatementResponse(BaseModel):
    model_config = {"from_attributes": True}

    date: str
    operating_cash_flow: float
    capital_expenditure: float
    free_cash_flow: float
    dividends_paid: float


class CompanyFinancialsResponse(BaseModel):
    """Response schema for a company's financial statements."""

    model_config = {"from_attributes": True}

    symbol: str
    name: str
    current_price: Optional[float] = None
    shares_outstanding: Optional[float] = None
    income_statement: list[IncomeStatementResponse]
    balance_sheet: list[BalanceSheetResponse]
    cash_flow_statement: list[CashFlowStatementResponse]


class RefreshRequest(BaseModel):
    """Request schema for a manual cache refresh."""

    force_refresh: bool = False
    metadata_only: bool = Field(
        default=False,
        description="Recompute earnings metadata without refetching data",
    )
    custom_ttl_days: Optional[float] = Field(default=None, gt=0, description="Override the computed TTL")

    @property
    def custom_ttl(self) -> Optional[timedelta]:
        return timedelta(days=self.custom_ttl_days) if self.custom_ttl_days else None


class OperationResultResponse(BaseModel):
    """Response schema for a cache write or refresh."""

    model_config = {"from_attributes": True}

    success: bool
    entry_id: Optional[str] = None
    error: Optional[str] = None
    from_cache: bool = False


class CacheStatisticsResponse(BaseModel):
    """Response schema for cache statistics."""

    model_config = {"from_attributes": True}

    total_entries: int
    fresh_entries: int
    stale_entries: int
    total_size: int = Field(description="Bytes")
    hit_ratio: float
    average_age: float = Field(description="Hours")
    newest_entry: Optional[str] = None
    oldest_entry: Optional[str] = None


class ClearCacheResponse(BaseModel):
    cleared: int


class CachedSymbolsResponse(BaseModel):
    symbols: list[str]


class CacheStatusResponse(BaseModel):
    symbol: str
    cached: bool


class OptimizeResponse(BaseModel):
    demoted: int


class CacheConfigResponse(BaseModel):
    """Response schema for the live cache configuration. Durations are in days."""

    default_ttl_days: float
    max_cache_size: int
    use_local_storage: bool
    use_remote_storage: bool
    enable_compression: bool
    max_age_days: float
    enable_background_refresh: bool
    background_refresh_delay: float


class CacheConfigUpdate(BaseModel):
    """Request schema for a partial cache configuration update."""

    model_config = {"extra": "forbid"}

    default_ttl_days: Optional[float] = Field(default=None, gt=0)
    max_cache_size: Optional[int] = Field(default=None, gt=0)
    use_local_storage: Optional[bool] = None
    use_remote_storage: Optional[bool] = None
    enable_compression: Optional[bool] = None
    max_age_days: Optional[float] = Field(default=None, gt=0)
    enable_background_refresh: Optional[bool] = None
    background_refresh_delay: Optional[float] = Field(default=None, ge=0)

    def to_changes(self) -> dict:
        """Translate set fields into CacheConfig keyword changes."""
        changes = self.model_dump(exclude_none=True)
        if "default_ttl_days" in changes:
            changes["default_ttl"] = timedelta(days=changes.pop("default_ttl_days"))
        if "max_age_days" in changes:
            changes["max_age"] = timedelta(days=changes.pop("max_age_days"))
        return changes
