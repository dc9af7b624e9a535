"""HTTP surface of the financial data cache."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from fincache.app_context import AppContext
from fincache.config.settings import get_settings
from fincache.config.logging_config import setup_logging
from fincache.api.routers import companies_router, cache_router
from fincache.core.exceptions import AppError


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Wire a cache service unless one was preset on app.state (tests do this)."""
    setup_logging()
    owned = None
    if getattr(app.state, "cache_service", None) is None:
        owned = AppContext()
        app.state.cache_service = owned.cache_service
    yield
    if owned is not None:
        await owned.close()
    else:
        await app.state.cache_service.wait_for_background_refreshes()


settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    description="Earnings-aware cache for company financial statements",
    version=settings.app_version,
    lifespan=lifespan,
)

app.include_router(companies_router)
app.include_router(cache_router)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.http_status,
        content={"error": exc.code, "message": exc.message},
    )


@app.get("/health")
def health_check() -> dict[str, str]:
    return {"status": "healthy"}


@app.get("/")
def root() -> dict[str, str]:
    """Service name, version and where the OpenAPI docs live."""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }
