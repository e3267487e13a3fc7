import asyncio
import logging
from typing import Any, Callable, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from services.errors import CacheUnavailableError

logger = logging.getLogger(__name__)


def _default_client_factory(url: str) -> Any:
    return redis.Redis.from_url(url, decode_responses=True)


class RedisConnection:
    """An owned Redis client with an explicit open/close lifecycle.

    ``client()`` reconnects on demand after a close. Concurrent ``open()``
    calls share a single client.
    """

    def __init__(self, url: str, client_factory: Optional[Callable[[str], Any]] = None):
        self.url = url
        self._client_factory = client_factory or _default_client_factory
        self._client: Optional[Any] = None
        self._lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return self._client is not None

    async def open(self) -> Any:
        async with self._lock:
            if self._client is not None:
                return self._client

            client = self._client_factory(self.url)
            try:
                await client.ping()
            except (RedisError, OSError) as e:
                logger.error(f"[Redis] failed to connect: {e}")
                await client.aclose()
                raise CacheUnavailableError(f"Redis unavailable at {self.url}") from e

            logger.info("[Redis] connected")
            self._client = client
            return client

    async def client(self) -> Any:
        if self._client is None:
            logger.warning("[Redis] reconnecting...")
            return await self.open()
        return self._client

    async def close(self) -> None:
        async with self._lock:
            client, self._client = self._client, None
        if client is not None:
            await client.aclose()
            logger.info("[Redis] closed")
