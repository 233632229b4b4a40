"""
Repository-Level Caching Decorators
=====================================

LRU caching for slow-changing registry reads (the device list, looked up on
every advertisement an ingestion job receives) with:
- Hit/miss/invalidation metrics
- Invalidation when a registered writer method runs

Architecture:
    Repository Method -> @repository_cache -> LRU Cache -> Database

Ledger state (placements, measurements) is never cached.
"""

from __future__ import annotations

import functools
import logging
from threading import Lock
from typing import Any, Callable, TypeVar, cast

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class RepositoryCacheStats:
    """Thread-safe hit/miss counters for one cached repository method."""

    def __init__(self, method_name: str, maxsize: int):
        self.method_name = method_name
        self.maxsize = maxsize
        self.hits = 0
        self.misses = 0
        self.invalidations = 0
        self._lock = Lock()

    def record_hit(self) -> None:
        with self._lock:
            self.hits += 1

    def record_miss(self) -> None:
        with self._lock:
            self.misses += 1

    def record_invalidation(self) -> None:
        with self._lock:
            self.invalidations += 1

    def get_stats(self) -> dict[str, Any]:
        with self._lock:
            total = self.hits + self.misses
            return {
                "method": self.method_name,
                "maxsize": self.maxsize,
                "hits": self.hits,
                "misses": self.misses,
                "hit_rate": round(self.hits / total * 100, 2) if total else 0.0,
                "invalidations": self.invalidations,
            }

    def reset(self) -> None:
        with self._lock:
            self.hits = 0
            self.misses = 0
            self.invalidations = 0


_cache_stats_registry: dict[str, RepositoryCacheStats] = {}
_registry_lock = Lock()


def get_repository_cache_stats() -> dict[str, dict[str, Any]]:
    with _registry_lock:
        return {name: stats.get_stats() for name, stats in _cache_stats_registry.items()}


def repository_cache(maxsize: int = 128, *, invalidate_on: list[str] | None = None) -> Callable[[F], F]:
    """
    LRU cache decorator for repository methods with metrics tracking.

    Usage:
        class DeviceRepository:
            @repository_cache(maxsize=16, invalidate_on=["register_device"])
            def list_devices(self):
                return self._backend.get_all_devices()

    Args:
        maxsize: Maximum number of cached entries
        invalidate_on: Names of writer methods that clear this cache

    Returns:
        Decorated function with caching and metrics
    """

    def decorator(func: F) -> F:
        method_name = f"{func.__module__}.{func.__qualname__}"
        stats = RepositoryCacheStats(method_name, maxsize)
        with _registry_lock:
            _cache_stats_registry[method_name] = stats

        cached_func = functools.lru_cache(maxsize=maxsize)(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            hits_before = cached_func.cache_info().hits
            result = cached_func(*args, **kwargs)
            if cached_func.cache_info().hits > hits_before:
                stats.record_hit()
            else:
                stats.record_miss()
            return result

        def invalidate_cache() -> None:
            cached_func.cache_clear()
            stats.record_invalidation()
            logger.debug("Cache invalidated: %s", method_name)

        wrapper.invalidate_cache = invalidate_cache  # type: ignore
        wrapper._cache_stats = stats  # type: ignore
        wrapper._invalidate_on = invalidate_on or []  # type: ignore
        return cast(F, wrapper)

    return decorator


def invalidate_related_caches(repository_instance: Any, method_name: str) -> None:
    """Clear every cached method on the instance that lists ``method_name`` as a trigger."""
    for attr_name in dir(type(repository_instance)):
        attr = getattr(type(repository_instance), attr_name, None)
        if method_name in getattr(attr, "_invalidate_on", ()):
            attr.invalidate_cache()
            logger.debug("Invalidated %s due to %s", attr_name, method_name)


def invalidates_caches(func: F) -> F:
    """
    Decorator for write methods that automatically invalidates related caches.

    Caches are cleared whether or not the write succeeds.
    """

    @functools.wraps(func)
    def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
        try:
            return func(self, *args, **kwargs)
        finally:
            invalidate_related_caches(self, func.__name__)

    return cast(F, wrapper)
