"""Cache storage strategies: local, remote and hybrid tiers."""

from fincache.strategies.base import CacheStorageStrategy
from fincache.strategies.local import LocalCacheStrategy
from fincache.strategies.remote import RemoteCacheStrategy
from fincache.strategies.hybrid import HybridCacheStrategy
from fincache.strategies.factory import create_cache_strategy

__all__ = [
    "CacheStorageStrategy",
    "LocalCacheStrategy",
    "RemoteCacheStrategy",
    "HybridCacheStrategy",
    "create_cache_strategy",
]
