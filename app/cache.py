"""Redis cache for aggregation and reference responses.

Read endpoints are wrapped with `cache_response(prefix, ttl)`. Keys are
readable, `pgf:<prefix>:<path>?<sorted query>`, so one prefix can be
dropped with a SCAN pattern after a facility update.

When Redis cannot be reached the cache turns itself off for the life of
the process and every request goes to the database.
"""

import json
import logging
from functools import wraps
from typing import Any, Iterable, Optional

import redis
from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from app.config import settings

logger = logging.getLogger(__name__)

KEY_NAMESPACE = "pgf"

# Responses derived from facility rows; stale after any facility update
AGGREGATE_PREFIXES = (
    "country-capacity",
    "capacity-by-fuel",
    "country-fuel-capacity",
)


class ResponseCache:
    """Lazily connected Redis client with JSON get/set and prefix clears."""

    def __init__(self, url: str, namespace: str = KEY_NAMESPACE):
        self.url = url
        self.namespace = namespace
        self._client: Optional[redis.Redis] = None
        self._disabled = False

    @property
    def client(self) -> Optional[redis.Redis]:
        if self._client is None and not self._disabled:
            try:
                client = redis.from_url(
                    self.url,
                    decode_responses=True,
                    socket_connect_timeout=2,
                    socket_timeout=2,
                )
                client.ping()
            except redis.RedisError as e:
                logger.warning(f"Redis unavailable at {self.url}, caching disabled: {e}")
                self._disabled = True
                return None
            logger.info(f"Redis connected: {self.url}")
            self._client = client
        return self._client

    def key_for(self, prefix: str, request: Request) -> str:
        query = "&".join(f"{k}={v}" for k, v in sorted(request.query_params.multi_items()))
        return f"{self.namespace}:{prefix}:{request.url.path}?{query}"

    def get(self, key: str) -> Optional[Any]:
        client = self.client
        if client is None:
            return None
        try:
            raw = client.get(key)
        except redis.RedisError as e:
            logger.debug(f"Cache read error for {key}: {e}")
            return None
        return json.loads(raw) if raw is not None else None

    def set(self, key: str, value: Any, ttl: int) -> None:
        client = self.client
        if client is None:
            return
        try:
            client.setex(key, ttl, json.dumps(value))
        except redis.RedisError as e:
            logger.debug(f"Cache write error for {key}: {e}")

    def clear(self, prefixes: Optional[Iterable[str]] = None) -> int:
        """Delete every key under the given prefixes (all keys when None)."""
        client = self.client
        if client is None:
            return 0

        patterns = (
            [f"{self.namespace}:{p}:*" for p in prefixes]
            if prefixes is not None
            else [f"{self.namespace}:*"]
        )
        cleared = 0
        try:
            for pattern in patterns:
                keys = list(client.scan_iter(match=pattern, count=200))
                if keys:
                    cleared += client.delete(*keys)
        except redis.RedisError as e:
            logger.warning(f"Cache invalidation error: {e}")
        return cleared


response_cache = ResponseCache(settings.REDIS_URL)


def cache_response(prefix: str, ttl: int = 300):
    """Cache a JSON endpoint's result under `prefix` for `ttl` seconds.

    The endpoint must declare a `request: Request` parameter. Hits are
    returned as a JSONResponse with an `X-Cache: HIT` header.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            request = kwargs.get("request")
            if request is None:
                request = next((a for a in args if isinstance(a, Request)), None)
            if request is None:
                return func(*args, **kwargs)

            key = response_cache.key_for(prefix, request)
            cached = response_cache.get(key)
            if cached is not None:
                return JSONResponse(content=cached, headers={"X-Cache": "HIT"})

            result = func(*args, **kwargs)
            if result is not None:
                response_cache.set(key, jsonable_encoder(result), ttl)
            return result
        return wrapper
    return decorator


def invalidate_aggregates() -> int:
    """Drop cached aggregation responses after facility data changes."""
    cleared = response_cache.clear(AGGREGATE_PREFIXES)
    if cleared:
        logger.info(f"Cleared {cleared} cached aggregation responses")
    return cleared


def invalidate_all() -> int:
    cleared = response_cache.clear()
    if cleared:
        logger.info(f"Cleared all {cleared} cache keys")
    return cleared
