"""API routers package."""

from fincache.api.routers.companies import router as companies_router
from fincache.api.routers.cache import router as cache_router

__all__ = [
    "companies_router",
    "cache_router",
]
