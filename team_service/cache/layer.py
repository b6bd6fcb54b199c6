import json
import logging
import time
from contextlib import contextmanager
from typing import Any

from fastapi import Request
from redis.asyncio import Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from team_service.core.config import Settings
from team_service.core.errors import CacheError, CacheUnavailable

logger = logging.getLogger(__name__)

# Returned by CacheLayer.get when the key does not exist, so a stored JSON null
# stays distinguishable from a miss.
MISSING = object()


def team_key(team_name: str, key: str) -> str:
    """Namespace a client-supplied key under the team label."""
    return f"{team_name}:{key}"


def task_list_key(team_name: str) -> str:
    return f"tasks:{team_name}"


class CacheLayer:
    """
    Optional Redis passthrough cache.

    - Not configured (empty REDIS_HOST): every operation raises CacheUnavailable.
    - Known disconnected: operations raise CacheUnavailable without touching
      the socket; the connection is re-probed at most every
      ``reconnect_interval`` seconds, and on every ping().
    - Connection or timeout failure mid-operation flips the layer to
      disconnected and raises CacheUnavailable.
    - Any other Redis failure raises CacheError.
    """

    def __init__(
        self,
        settings: Settings,
        client: Redis | None = None,
        reconnect_interval: float = 5.0,
    ):
        self._settings = settings
        self._redis = client
        self._connected = False
        self._last_probe = float("-inf")
        self.reconnect_interval = reconnect_interval

        if self._redis is None and settings.cache_configured:
            self._redis = Redis(
                host=settings.redis_host,
                port=settings.redis_port,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=settings.redis_timeout,
                socket_timeout=settings.redis_timeout,
                socket_keepalive=True,
                health_check_interval=30,
            )

        # Stats tracking
        self.stats = {"hits": 0, "misses": 0, "errors": 0}

    @property
    def configured(self) -> bool:
        return self._redis is not None

    @property
    def available(self) -> bool:
        return self.configured and self._connected

    async def connect(self) -> bool:
        """Verify the connection at startup; failure leaves the layer degraded."""
        if not self.configured:
            logger.info("Redis not configured, cache endpoints disabled")
            return False
        if await self.ping():
            logger.info("Redis connection established")
        return self._connected

    async def ping(self) -> bool:
        """Probe Redis and record the outcome."""
        if not self.configured:
            return False
        self._last_probe = time.monotonic()
        try:
            await self._redis.ping()
        except RedisError as e:
            if self._connected:
                logger.warning(f"Redis connection lost: {e}")
            self._connected = False
            return False
        self._connected = True
        return True

    async def _client(self) -> Redis:
        if not self.configured:
            raise CacheUnavailable()
        if not self._connected:
            if time.monotonic() - self._last_probe < self.reconnect_interval:
                raise CacheUnavailable()
            if not await self.ping():
                raise CacheUnavailable()
        return self._redis

    @contextmanager
    def _translate_errors(self, action: str):
        try:
            yield
        except (RedisConnectionError, RedisTimeoutError) as e:
            self._connected = False
            self.stats["errors"] += 1
            logger.warning(f"Redis {action} failed, marking cache unavailable: {e}")
            raise CacheUnavailable() from e
        except RedisError as e:
            self.stats["errors"] += 1
            raise CacheError(f"Failed to {action} cache") from e

    def _serialize(self, value: Any) -> str:
        """Serialize value for storage."""
        return json.dumps(value, default=str)

    def _deserialize(self, raw: str) -> Any:
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise CacheError("Failed to get cache") from e

    async def get(self, key: str) -> Any:
        """Return the decoded value for ``key``, or MISSING."""
        client = await self._client()
        with self._translate_errors("get"):
            raw = await client.get(key)
        if raw is None:
            self.stats["misses"] += 1
            return MISSING
        self.stats["hits"] += 1
        return self._deserialize(raw)

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        client = await self._client()
        data = self._serialize(value)
        with self._translate_errors("set"):
            await client.set(key, data, ex=ttl or self._settings.cache_default_ttl)

    async def delete(self, key: str) -> None:
        client = await self._client()
        with self._translate_errors("delete"):
            await client.delete(key)

    async def delete_quietly(self, key: str) -> None:
        """Delete used as a write side effect; cache trouble never fails the write."""
        try:
            await self.delete(key)
        except CacheUnavailable:
            logger.debug(f"Cache unavailable, skipped invalidation of {key}")
        except CacheError as e:
            logger.warning(f"Cache invalidation of {key} failed: {e.__cause__!r}")

    async def close(self):
        """Graceful shutdown of cache connections."""
        if self._redis:
            try:
                await self._redis.aclose()
                logger.info("Redis connection closed")
            except RedisError as e:
                logger.error(f"Error closing Redis: {e}")
        self._connected = False

    def get_stats(self) -> dict:
        total = self.stats["hits"] + self.stats["misses"]
        return {
            **self.stats,
            "hit_rate": self.stats["hits"] / total if total > 0 else 0,
        }


def get_cache(request: Request) -> CacheLayer:
    return request.app.state.cache
