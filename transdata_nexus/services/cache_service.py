"""
Response cache for the search endpoints

Thin wrapper over a flask_caching.Cache. Backend failures are logged and
treated as misses so a cache outage never fails a request.
"""

import logging
from typing import Any, Dict, Optional

from flask_caching import Cache

logger = logging.getLogger(__name__)


def generate_cache_key(prefix: str, params: Dict[str, Any]) -> str:
    """
    Deterministic cache key from request parameters

    Returns:
        "prefix:k1:v1|k2:v2" with keys sorted
    """
    parts = [f"{key}:{params[key]}" for key in sorted(params)]
    return f"{prefix}:{'|'.join(parts)}"


class TradeCache:
    """
    Get/set wrapper around a Flask-Caching backend

    With no backend every lookup is a miss and every store is a no-op.
    """

    def __init__(self, cache: Optional[Cache] = None, default_timeout: int = 300):
        self.cache = cache
        self.default_timeout = default_timeout

    @property
    def enabled(self) -> bool:
        return self.cache is not None

    def get(self, key: str) -> Optional[Any]:
        if not self.enabled:
            return None
        try:
            value = self.cache.get(key)
        except Exception as e:
            logger.warning(f"Cache get error for {key}: {e}")
            return None
        logger.debug(f"Cache {'HIT' if value is not None else 'MISS'}: {key}")
        return value

    def set(self, key: str, value: Any, timeout: Optional[int] = None) -> bool:
        if not self.enabled:
            return False
        try:
            self.cache.set(key, value, timeout=timeout or self.default_timeout)
            return True
        except Exception as e:
            logger.warning(f"Cache set error for {key}: {e}")
            return False

    def delete(self, key: str) -> bool:
        if not self.enabled:
            return False
        try:
            return bool(self.cache.delete(key))
        except Exception as e:
            logger.warning(f"Cache delete error for {key}: {e}")
            return False

    def clear(self) -> bool:
        """Drop every cached entry (the backend cannot delete by pattern)"""
        if not self.enabled:
            return False
        try:
            return bool(self.cache.clear())
        except Exception as e:
            logger.warning(f"Cache clear error: {e}")
            return False

    def ping(self) -> bool:
        """Round-trip a marker value through the backend"""
        if not self.enabled:
            return False
        try:
            self.cache.set('__ping__', 'pong', timeout=5)
            return self.cache.get('__ping__') == 'pong'
        except Exception as e:
            logger.error(f"Cache ping failed: {e}")
            return False
