"""
Pytest configuration and fixtures for financial data cache tests.

This module provides:
- Time helpers and a controllable Eastern clock
- In-memory key-value and document stores
- In-memory SQLite database fixtures
- Deterministic, failing and slow data providers
- Failing store and tier stubs
- Service and API client fixtures
"""

import asyncio
from datetime import datetime, timedelta
from typing import Any, Optional

import pytest
from sqlalchemy import create_engine, StaticPool
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from fincache.api.main import app
from fincache.repositories.memory import InMemoryKeyValueStore
from fincache.repositories.sqlalchemy.database import Base
# Import ORM models to register them with Base before creating tables
from fincache.repositories.sqlalchemy import orm_models  # noqa: F401
from fincache.repositories.sqlalchemy import SqlAlchemyDocumentStore
from fincache.services.freshness import FreshnessPolicy
from fincache.services.financial_data_cache import FinancialDataCacheService
from fincache.strategies import LocalCacheStrategy, RemoteCacheStrategy
from fincache.domain.models import (
    BalanceSheet,
    CacheConfig,
    CashFlowStatement,
    CompanyFinancials,
    IncomeStatement,
)
from fincache.core.timezone import EASTERN_TZ
from fincache.config.settings import reset_settings


# =============================================================================
# TIMEZONE HELPERS
# =============================================================================


def eastern_datetime(
    year: int,
    month: int,
    day: int,
    hour: int = 10,
    minute: int = 0,
    second: int = 0,
) -> datetime:
    """Create a localized datetime in US/Eastern timezone."""
    return EASTERN_TZ.localize(datetime(year, month, day, hour, minute, second))


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


@pytest.fixture
def fixed_now() -> datetime:
    """Fixed 'now' timestamp for deterministic tests (outside earnings season)."""
    return eastern_datetime(2024, 12, 1, 10, 0, 0)


@pytest.fixture
def clock(fixed_now) -> FixedClock:
    return FixedClock(fixed_now)


# =============================================================================
# FINANCIAL DATA HELPERS
# =============================================================================


QUARTERLY_DATES = ["2024-02-01", "2024-05-01", "2024-08-01", "2024-11-01"]


def make_financials(symbol: str = "ACME", dates: Optional[list[str]] = None) -> CompanyFinancials:
    """Build a small statement bundle with one filing per date, most recent first."""
    dates = sorted(dates if dates is not None else QUARTERLY_DATES, reverse=True)
    return CompanyFinancials(
        symbol=symbol,
        name=f"{symbol} Corp.",
        current_price=100.0,
        shares_outstanding=1_000_000.0,
        income_statement=[
            IncomeStatement(date=d, revenue=1000.0, operating_income=200.0, net_income=150.0, eps=1.5)
            for d in dates
        ],
        balance_sheet=[
            BalanceSheet(date=d, total_assets=5000.0, total_liabilities=2000.0, total_equity=3000.0)
            for d in dates
        ],
        cash_flow_statement=[
            CashFlowStatement(date=d, operating_cash_flow=180.0, capital_expenditure=30.0, free_cash_flow=150.0)
            for d in dates
        ],
    )


def run(coro):
    """Drive a coroutine to completion on a fresh event loop."""
    return asyncio.run(coro)


# =============================================================================
# STORE DOUBLES
# =============================================================================


class InMemoryDocumentStore:
    """Dictionary-backed DocumentStore for unit tests."""

    def __init__(self):
        self.documents: dict[str, dict[str, dict[str, Any]]] = {}

    async def get_document(self, owner: str, symbol: str) -> Optional[dict[str, Any]]:
        return self.documents.get(owner, {}).get(symbol)

    async def set_document(self, owner: str, symbol: str, document: dict[str, Any]) -> None:
        self.documents.setdefault(owner, {})[symbol] = document

    async def delete_document(self, owner: str, symbol: str) -> None:
        self.documents.get(owner, {}).pop(symbol, None)

    async def list_documents(self, owner: str) -> dict[str, dict[str, Any]]:
        return dict(self.documents.get(owner, {}))

    async def delete_documents(self, owner: str) -> int:
        return len(self.documents.pop(owner, {}))


class FailingKeyValueStore:
    """KeyValueStore whose every operation raises."""

    def get_item(self, key: str) -> Optional[str]:
        raise OSError("Local storage unavailable")

    def set_item(self, key: str, value: str) -> None:
        raise OSError("Local storage unavailable")

    def remove_item(self, key: str) -> None:
        raise OSError("Local storage unavailable")

    def keys(self) -> list[str]:
        raise OSError("Local storage unavailable")


class FailingDocumentStore:
    """DocumentStore whose every operation raises."""

    async def get_document(self, owner: str, symbol: str):
        raise ConnectionError("Remote storage unavailable")

    async def set_document(self, owner: str, symbol: str, document) -> None:
        raise ConnectionError("Remote storage unavailable")

    async def delete_document(self, owner: str, symbol: str) -> None:
        raise ConnectionError("Remote storage unavailable")

    async def list_documents(self, owner: str):
        raise ConnectionError("Remote storage unavailable")

    async def delete_documents(self, owner: str) -> int:
        raise ConnectionError("Remote storage unavailable")


class FailingTier:
    """Cache strategy stub that raises from every operation."""

    async def get(self, owner, symbol):
        raise RuntimeError("tier down")

    async def set(self, owner, symbol, data, metadata=None):
        raise RuntimeError("tier down")

    async def remove(self, owner, symbol):
        raise RuntimeError("tier down")

    async def clear(self, owner):
        raise RuntimeError("tier down")

    async def get_statistics(self, owner):
        raise RuntimeError("tier down")

    async def is_fresh(self, owner, symbol):
        raise RuntimeError("tier down")

    async def list_keys(self, owner):
        raise RuntimeError("tier down")


@pytest.fixture
def local_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def document_store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def policy(clock) -> FreshnessPolicy:
    return FreshnessPolicy(clock=clock)


@pytest.fixture
def local_strategy(local_store, policy, clock) -> LocalCacheStrategy:
    return LocalCacheStrategy(local_store, policy=policy, clock=clock)


@pytest.fixture
def remote_strategy(document_store, policy, clock) -> RemoteCacheStrategy:
    return RemoteCacheStrategy(document_store, policy=policy, clock=clock)


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture(scope="function")
def test_engine():
    """Create test database engine with shared in-memory SQLite."""
    # Reset settings for clean state
    reset_settings()

    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def session_factory(test_engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture
def sql_document_store(session_factory) -> SqlAlchemyDocumentStore:
    """Provide a SQLite-backed document store."""
    return SqlAlchemyDocumentStore(session_factory)


# =============================================================================
# DATA PROVIDER FIXTURES
# =============================================================================


class CountingProvider:
    """
    Deterministic financial data provider for testing.

    Returns fixed statements and counts calls per symbol. Set `error` to make
    subsequent fetches raise it.
    """

    def __init__(self, dates: Optional[list[str]] = None):
        self.dates = dates if dates is not None else list(QUARTERLY_DATES)
        self.calls: list[str] = []
        self.error: Optional[Exception] = None

    async def fetch_financials(self, symbol: str) -> CompanyFinancials:
        self.calls.append(symbol)
        if self.error is not None:
            raise self.error
        return make_financials(symbol, self.dates)


class SlowProvider:
    """Provider that takes longer than any reasonable test timeout."""

    async def fetch_financials(self, symbol: str) -> CompanyFinancials:
        await asyncio.sleep(5)
        return make_financials(symbol)


@pytest.fixture
def provider() -> CountingProvider:
    return CountingProvider()


@pytest.fixture
def failing_provider() -> CountingProvider:
    """Provide a data provider that always fails."""
    provider = CountingProvider()
    provider.error = ConnectionError("Network unavailable")
    return provider


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def cache_config() -> CacheConfig:
    """Default policy with background refresh off so provider calls are exact."""
    return CacheConfig(enable_background_refresh=False, background_refresh_delay=0)


@pytest.fixture
def cache_service(provider, local_store, document_store, cache_config, clock) -> FinancialDataCacheService:
    """Provide a hybrid-tier cache service over in-memory stores."""
    return FinancialDataCacheService(
        provider=provider,
        local_store=local_store,
        document_store=document_store,
        config=cache_config,
        clock=clock,
    )


# =============================================================================
# API CLIENT FIXTURE
# =============================================================================


@pytest.fixture
def client(cache_service) -> TestClient:
    """Provide FastAPI test client wired to the test cache service."""
    app.state.cache_service = cache_service
    with TestClient(app) as c:
        yield c
    app.state.cache_service = None
