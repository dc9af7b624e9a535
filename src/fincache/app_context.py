"""Application context for in-process service management.

Builds the storage backends, the data provider and the cache service from
Settings. Used by the HTTP API lifespan and by scripts that need the cache
without going through HTTP.
"""

import logging
from typing import Optional

from fincache.config.settings import Settings, get_settings, set_settings
from fincache.domain.models import CacheConfig
from fincache.providers import FinancialDataProvider, FmpFinancialDataProvider, StubFinancialDataProvider
from fincache.repositories.filesystem import JsonFileKeyValueStore
from fincache.repositories.sqlalchemy import SqlAlchemyDocumentStore
from fincache.repositories.sqlalchemy.database import get_session_factory, init_db, reset_database
from fincache.services.financial_data_cache import FinancialDataCacheService

logger = logging.getLogger(__name__)


class AppContext:
    """
    Application context providing in-process access to the cache service.

    Components are created lazily on first access.
    """

    def __init__(self, settings: Optional[Settings] = None):
        if settings is not None:
            # The database module reads the global settings
            set_settings(settings)
        self._settings = settings or get_settings()
        self._provider: Optional[FinancialDataProvider] = None
        self._document_store: Optional[SqlAlchemyDocumentStore] = None
        self._local_store: Optional[JsonFileKeyValueStore] = None
        self._cache_service: Optional[FinancialDataCacheService] = None

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def provider(self) -> FinancialDataProvider:
        """FMP provider when an API key is configured, the offline stub otherwise."""
        if self._provider is None:
            if self._settings.fmp_api_key:
                self._provider = FmpFinancialDataProvider(
                    api_key=self._settings.fmp_api_key,
                    base_url=self._settings.fmp_api_url,
                    timeout=self._settings.fmp_timeout_seconds,
                )
            else:
                logger.info("No FMP API key configured, using stub financial data provider")
                self._provider = StubFinancialDataProvider()
        return self._provider

    @property
    def document_store(self) -> SqlAlchemyDocumentStore:
        if self._document_store is None:
            reset_database()
            init_db()
            self._document_store = SqlAlchemyDocumentStore(get_session_factory())
        return self._document_store

    @property
    def local_store(self) -> JsonFileKeyValueStore:
        if self._local_store is None:
            self._local_store = JsonFileKeyValueStore(self._settings.get_local_cache_dir())
        return self._local_store

    @property
    def cache_service(self) -> FinancialDataCacheService:
        """Get the FinancialDataCacheService instance."""
        if self._cache_service is None:
            self._cache_service = FinancialDataCacheService(
                provider=self.provider,
                local_store=self.local_store,
                document_store=self.document_store,
                config=CacheConfig.from_settings(self._settings),
            )
        return self._cache_service

    async def close(self) -> None:
        """Wait for background refreshes, then release the database engine."""
        if self._cache_service is not None:
            await self._cache_service.wait_for_background_refreshes()
        if self._document_store is not None:
            reset_database()
