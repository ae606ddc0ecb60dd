"""
Request Cache Service
In-process TTL cache with in-flight request sharing.
One instance is created at application start and passed to its consumers.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from ..config import DEFAULT_CACHE_TTL

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MISSING = object()


@dataclass
class CacheEntry:
    value: Any
    inserted_at: float


class TTLRequestCache:
    """
    Key -> value cache where entries expire ttl seconds after insertion.
    Expired entries are indistinguishable from absent ones; nothing is evicted
    except by clear()/clear_prefix() or by being overwritten.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, default_ttl: float = DEFAULT_CACHE_TTL):
        self._clock = clock
        self.default_ttl = default_ttl
        self._entries: Dict[str, CacheEntry] = {}
        self._pending: Dict[str, asyncio.Future] = {}

    def get(self, key: str, ttl: Optional[float] = None, default: Any = None) -> Any:
        """Return the cached value if it is younger than ttl, else default"""
        entry = self._entries.get(key)
        if entry is None:
            return default

        ttl = self.default_ttl if ttl is None else ttl
        if self._clock() - entry.inserted_at < ttl:
            return entry.value
        return default

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = CacheEntry(value=value, inserted_at=self._clock())

    def clear(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear_prefix(self, prefix: str) -> int:
        """Drop every entry whose key starts with prefix"""
        keys = [key for key in self._entries if key.startswith(prefix)]
        for key in keys:
            del self._entries[key]
        if keys:
            logger.debug(f"Cleared {len(keys)} cache entries under {prefix!r}")
        return len(keys)

    def is_pending(self, key: str) -> bool:
        return key in self._pending

    def __len__(self) -> int:
        return len(self._entries)

    async def fetch_with_cache(
        self,
        key: str,
        produce: Callable[[], Awaitable[T]],
        ttl: Optional[float] = None,
    ) -> T:
        """
        Return the cached value for key, or run produce() and cache its result
        Args:
            key: Serialized request, e.g. "products:categoryId=cat1"
            produce: Zero-argument coroutine function computing the value
            ttl: Freshness window in seconds, defaults to the cache's default_ttl
        Returns:
            The cached or freshly produced value
        Raises:
            Whatever produce() raises, unchanged. Callers that joined the
            in-flight request receive the same error.
        """
        cached = self.get(key, ttl, default=_MISSING)
        if cached is not _MISSING:
            logger.debug(f"Using cached data for key: {key}")
            return cached

        in_flight = self._pending.get(key)
        if in_flight is not None:
            logger.debug(f"Request already pending for key: {key}, joining it")
            return await asyncio.shield(in_flight)

        future = asyncio.get_running_loop().create_future()
        self._pending[key] = future
        try:
            value = await produce()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            # Joined callers re-raise it themselves; mark it retrieved for the loop
            future.exception()
            raise
        else:
            self.set(key, value)
            future.set_result(value)
            return value
        finally:
            self._pending.pop(key, None)
