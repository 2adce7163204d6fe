"""Redis-backed cache for question-bank catalog lookups.

Category counts are read on every visit to the quiz configuration screen but
change only when the bank is edited, so they are cached for a short TTL.
Keys are content-addressed (SHA-256 of the serialised parameters). Every
failure is non-fatal: the caller falls back to the database.
"""

import hashlib
import json
import logging
from typing import Any

import redis

from quizapp.config import settings

logger = logging.getLogger(__name__)

_pool: redis.ConnectionPool | None = None


def _get_redis() -> redis.Redis:
    """Return a Redis client backed by a shared connection pool."""
    global _pool
    if _pool is None:
        _pool = redis.ConnectionPool.from_url(
            settings.redis_url,
            decode_responses=True,
            max_connections=10,
            socket_connect_timeout=1,
            socket_timeout=1,
        )
    return redis.Redis(connection_pool=_pool)


def _make_key(prefix: str, params: dict[str, Any]) -> str:
    """Create a deterministic cache key from prefix + sorted param hash."""
    serialised = json.dumps(params, sort_keys=True, default=str)
    digest = hashlib.sha256(serialised.encode()).hexdigest()[:16]
    return f"quiz_cache:{prefix}:{digest}"


def cache_get(prefix: str, params: dict[str, Any]) -> Any | None:
    """Retrieve a cached value (or None on miss/disabled)."""
    if not settings.CATALOG_CACHE_ENABLED:
        return None
    try:
        r = _get_redis()
        key = _make_key(prefix, params)
        raw = r.get(key)
        if raw:
            logger.debug("Catalog cache HIT: %s", key)
            return json.loads(raw)
        logger.debug("Catalog cache MISS: %s", key)
        return None
    except Exception as e:
        logger.warning("Catalog cache read failed (non-fatal): %s", e)
        return None


def cache_set(
    prefix: str,
    params: dict[str, Any],
    value: Any,
    ttl: int | None = None,
) -> None:
    """Store a value in cache."""
    if not settings.CATALOG_CACHE_ENABLED:
        return
    try:
        r = _get_redis()
        key = _make_key(prefix, params)
        r.setex(key, ttl or settings.CATALOG_CACHE_TTL_SECONDS, json.dumps(value, default=str))
        logger.debug("Catalog cache SET: %s (ttl=%ds)", key, ttl or settings.CATALOG_CACHE_TTL_SECONDS)
    except Exception as e:
        logger.warning("Catalog cache write failed (non-fatal): %s", e)
