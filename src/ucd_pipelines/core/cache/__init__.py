# src/ucd_pipelines/core/cache/__init__.py
"""Stores de cache de saídas de rotas (memória e joblib em disco)."""

from .joblib_store import JoblibCacheStore
from .store import (
    CacheEntry,
    CacheKey,
    CacheStats,
    CacheStore,
    MemoryCacheStore,
    hash_artifact,
    serialize_cache_key,
)

__all__ = [
    "CacheEntry",
    "CacheKey",
    "CacheStats",
    "CacheStore",
    "MemoryCacheStore",
    "JoblibCacheStore",
    "hash_artifact",
    "serialize_cache_key",
]
