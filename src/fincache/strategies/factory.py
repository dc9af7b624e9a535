"""Builds the cache strategy for a configured storage tier."""

import logging
from datetime import datetime
from typing import Callable, Optional

from fincache.core.timezone import now_eastern
from fincache.domain.models import CacheConfig, CacheTier
from fincache.repositories.protocols import DocumentStore, KeyValueStore
from fincache.services.freshness import FreshnessPolicy
from fincache.strategies.base import CacheStorageStrategy
from fincache.strategies.hybrid import HybridCacheStrategy
from fincache.strategies.local import LocalCacheStrategy
from fincache.strategies.remote import RemoteCacheStrategy


def create_cache_strategy(
    tier: CacheTier,
    *,
    local_store: KeyValueStore,
    document_store: DocumentStore,
    config: CacheConfig,
    policy: Optional[FreshnessPolicy] = None,
    clock: Callable[[], datetime] = now_eastern,
    logger: Optional[logging.Logger] = None,
) -> CacheStorageStrategy:
    policy = policy or FreshnessPolicy(clock=clock)

    def local() -> LocalCacheStrategy:
        return LocalCacheStrategy(
            local_store,
            max_size=config.max_cache_size,
            enable_compression=config.enable_compression,
            default_ttl=config.default_ttl,
            policy=policy,
            clock=clock,
            logger=logger,
        )

    def remote() -> RemoteCacheStrategy:
        return RemoteCacheStrategy(
            document_store,
            default_ttl=config.default_ttl,
            policy=policy,
            clock=clock,
            logger=logger,
        )

    if tier == CacheTier.LOCAL:
        return local()
    if tier == CacheTier.REMOTE:
        return remote()
    return HybridCacheStrategy(local(), remote(), policy=policy, clock=clock, logger=logger)
