"""
In-memory TTL cache for catalog and admin queries

Single-process cache: entries expire after their TTL and the oldest entry
is evicted when the cache is full. Product writes invalidate the related
keys through clear_product_cache().
"""
import json
import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 5 * 60

# TTL por tipo de dato (segundos)
CACHE_TTL = {
    "PRODUCTS": 10 * 60,
    "PRODUCT_DETAIL": 30 * 60,
    "USER_ORDERS": 5 * 60,
    "SEARCH": 5 * 60,
    "STATS": 15 * 60,
    "ADMIN_STATS": 30 * 60,
}


class MemoryCache:
    """TTL cache with oldest-first eviction"""

    def __init__(self, max_size: int = 1000):
        self.max_size = max_size
        # {key: (value, stored_at, ttl_seconds)}
        self._entries: "OrderedDict[str, Tuple[Any, float, float]]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            value, stored_at, ttl = entry
            if time.time() - stored_at > ttl:
                del self._entries[key]
                return None

            return value

    def set(self, key: str, value: Any, ttl: float = DEFAULT_TTL_SECONDS) -> None:
        """Store a value; a full cache drops expired entries, then the oldest one"""
        with self._lock:
            if key in self._entries:
                del self._entries[key]
            elif len(self._entries) >= self.max_size:
                if not self._drop_expired(time.time()):
                    oldest_key = next(iter(self._entries))
                    del self._entries[oldest_key]

            self._entries[key] = (value, time.time(), ttl)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._entries.keys())

    def _drop_expired(self, now: float) -> int:
        """Caller holds the lock"""
        expired = [
            key for key, (_, stored_at, ttl) in self._entries.items()
            if now - stored_at > ttl
        ]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def cleanup(self) -> int:
        """Remove expired entries, returns how many were dropped"""
        with self._lock:
            removed = self._drop_expired(time.time())

        if removed:
            logger.debug(f"Cache cleanup removed {removed} expired entries")
        return removed

    def stats(self) -> Dict[str, int]:
        now = time.time()
        with self._lock:
            expired = sum(
                1 for _, stored_at, ttl in self._entries.values()
                if now - stored_at > ttl
            )
            total = len(self._entries)

        return {
            "total": total,
            "valid": total - expired,
            "expired": expired,
            "maxSize": self.max_size,
        }


# Global cache instance
cache = MemoryCache(max_size=1000)


class cache_keys:
    """Cache key builders"""

    @staticmethod
    def product(product_id: Any) -> str:
        return f"product:{product_id}"

    @staticmethod
    def products_list(page: int, limit: int, filters: dict) -> str:
        return f"products:list:{page}:{limit}:{json.dumps(filters, sort_keys=True, default=str)}"

    @staticmethod
    def related_products(product_id: Any, limit: int) -> str:
        return f"products:related:{product_id}:{limit}"

    @staticmethod
    def search_suggestions(query: str, limit: int) -> str:
        return f"search:suggestions:{query}:{limit}"

    @staticmethod
    def user_orders(user_id: Any) -> str:
        return f"user:{user_id}:orders"

    @staticmethod
    def stats(stats_type: str) -> str:
        return f"stats:{stats_type}"


def get_cached_data(key: str, fetch: Callable[[], Any], ttl: float = DEFAULT_TTL_SECONDS) -> Any:
    """Return the cached value for key, computing and storing it on a miss"""
    cached = cache.get(key)
    if cached is not None:
        return cached

    data = fetch()
    cache.set(key, data, ttl)
    return data


def invalidate_related(pattern: str) -> int:
    """Delete every key containing pattern"""
    removed = 0
    for key in cache.keys():
        if pattern in key and cache.delete(key):
            removed += 1

    if removed:
        logger.debug(f"Invalidated {removed} cache entries matching '{pattern}'")
    return removed


def clear_product_cache(product_id: Any = None) -> None:
    if product_id is not None:
        cache.delete(cache_keys.product(product_id))
        invalidate_related("products:")
        invalidate_related("search")
    else:
        invalidate_related("product")
        invalidate_related("search")


def clear_user_cache(user_id: Any) -> None:
    invalidate_related(f"user:{user_id}:")


def get_cache_stats() -> Dict[str, int]:
    return cache.stats()


def clear_all_cache() -> None:
    cache.clear()
