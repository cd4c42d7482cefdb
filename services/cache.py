"""TTL cache for resolved exchange rates, backed by Django's cache framework."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

from django.core.cache import cache as default_cache

if TYPE_CHECKING:
    from collections.abc import Callable

    from django.core.cache.backends.base import BaseCache


class CacheKeyPrefix:
    """Cache key prefixes for different data types."""

    EXCHANGE_RATE = "rate"
    GENERATION = "generation"


class TTLCache:
    """
    Key/value cache with per-entry expiry and an injectable clock.

    Entries live in Django's configured cache (Redis in production), so
    every worker process sees the same rates and an invalidation made by
    one worker reaches all of them. Each entry is stored as
    ``(expires_at, value)`` with ``expires_at`` taken from the injected
    clock and checked on read; the same TTL is passed to the backend as its
    timeout so stale entries are also evicted there.

    Example:
        >>> now = [0.0]
        >>> cache = TTLCache(clock=lambda: now[0])
        >>> cache.set("rate:US:NP", result, ttl=900)
        >>> now[0] = 901.0
        >>> cache.get("rate:US:NP") is None
        True
    """

    def __init__(
        self,
        key_prefix: str = "pricing",
        clock: Callable[[], float] = time.time,
        default_ttl: int | None = None,
        backend: BaseCache | None = None,
    ) -> None:
        """
        Initialize the cache.

        Args:
            key_prefix: Prefix for all cache keys (default: 'pricing').
            clock: Wall-clock time source in seconds (default: ``time.time``).
            default_ttl: TTL applied when ``set`` receives none (None = no expiry).
            backend: Django cache to store entries in (default: ``caches['default']``).
        """
        self._key_prefix = key_prefix
        self._clock = clock
        self._default_ttl = default_ttl
        self._backend = backend if backend is not None else default_cache

    def _generation(self) -> int:
        generation: int = self._backend.get(self._generation_key, 0)
        return generation

    @property
    def _generation_key(self) -> str:
        return f"{self._key_prefix}:{CacheKeyPrefix.GENERATION}"

    def _make_key(self, key: str) -> str:
        """Create a full cache key with prefix and the current generation."""
        return f"{self._key_prefix}:{self._generation()}:{key}"

    def get(self, key: str) -> Any | None:
        """
        Get a value from the cache.

        Args:
            key: The cache key.

        Returns:
            The cached value, or None if missing or expired.
        """
        full_key = self._make_key(key)
        entry = self._backend.get(full_key)
        if entry is None:
            return None
        expires_at, value = entry
        if expires_at is not None and self._clock() >= expires_at:
            self._backend.delete(full_key)
            return None
        return value

    def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """
        Set a value in the cache.

        Args:
            key: The cache key.
            value: The value to cache.
            ttl: Time-to-live in seconds (falls back to the default TTL).

        Returns:
            True if successful.
        """
        effective_ttl = ttl if ttl is not None else self._default_ttl
        expires_at = None if effective_ttl is None else self._clock() + effective_ttl
        self._backend.set(self._make_key(key), (expires_at, value), effective_ttl)
        return True

    def invalidate(self, key: str) -> bool:
        """
        Remove a value from the cache.

        Args:
            key: The cache key.

        Returns:
            True if an entry was removed.
        """
        return bool(self._backend.delete(self._make_key(key)))

    def clear(self) -> None:
        """
        Drop every entry under this prefix.

        Django's cache cannot delete by pattern, so the prefix's generation
        is bumped instead; entries of older generations are never read
        again and expire on their own.
        """
        try:
            self._backend.incr(self._generation_key)
        except ValueError:
            self._backend.set(self._generation_key, self._generation() + 1, None)

    @staticmethod
    def make_rate_key(origin: str, destination: str) -> str:
        """
        Generate a cache key for an exchange rate.

        The pair is ordered: ``US -> NP`` and ``NP -> US`` are distinct keys.

        Args:
            origin: Origin country code.
            destination: Destination country code.

        Returns:
            Cache key for this direction.
        """
        return f"{CacheKeyPrefix.EXCHANGE_RATE}:{origin}:{destination}"
