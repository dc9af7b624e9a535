"""Dependency injection for FastAPI."""

from fastapi import Header, Request

from fincache.core.exceptions import ValidationError
from fincache.services.financial_data_cache import FinancialDataCacheService


def get_cache_service(request: Request) -> FinancialDataCacheService:
    """Provide the application's FinancialDataCacheService instance."""
    return request.app.state.cache_service


def get_owner(x_user_id: str = Header(default="", description="Owner of the cache entries")) -> str:
    """Provide the cache owner from the X-User-Id header."""
    owner = x_user_id.strip()
    if not owner:
        raise ValidationError("X-User-Id header is required")
    return owner
