"""Database decorators for caching registry reads."""

from infrastructure.database.decorators.caching import (
    RepositoryCacheStats,
    get_repository_cache_stats,
    invalidate_related_caches,
    invalidates_caches,
    repository_cache,
)

__all__ = [
    "repository_cache",
    "invalidates_caches",
    "invalidate_related_caches",
    "get_repository_cache_stats",
    "RepositoryCacheStats",
]
