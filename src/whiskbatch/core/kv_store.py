"""Key-value store backends for the shared session cache.

The session cache only needs two operations, ``get`` and ``set``, over string
values.  Two backends implement them:

- :class:`MemoryKeyValueStore` keeps values in the process.  It is the default
  when no Redis URL is configured and is what the tests use.
- :class:`RedisKeyValueStore` delegates to a Redis server so several API
  processes share one cached upstream session.

Writes replace the whole value; concurrent writers resolve as last writer wins.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod

from redis import asyncio as aioredis

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Minimal async string store used by :class:`SessionCache`."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the value stored under *key*, or ``None`` if absent."""

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Replace the value stored under *key*."""

    async def close(self) -> None:
        """Release any connection held by the store."""


class MemoryKeyValueStore(KeyValueStore):
    """In-process store backed by a dict."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    async def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value


class RedisKeyValueStore(KeyValueStore):
    """Store backed by a Redis server.

    Args:
        client: A ``redis.asyncio.Redis`` client.  Responses must be decoded
            to ``str`` (``decode_responses=True``).
    """

    def __init__(self, client: aioredis.Redis):
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> RedisKeyValueStore:
        return cls(aioredis.from_url(url, decode_responses=True))

    async def get(self, key: str) -> str | None:
        return await self._client.get(key)

    async def set(self, key: str, value: str) -> None:
        await self._client.set(key, value)

    async def close(self) -> None:
        await self._client.aclose()


def create_store(redis_url: str | None) -> KeyValueStore:
    """Build the store selected by configuration.

    Args:
        redis_url: Redis connection URL, or ``None`` for the in-memory store

    Returns:
        A ready-to-use store instance
    """
    if redis_url:
        logger.info("Using Redis session store")
        return RedisKeyValueStore.from_url(redis_url)

    logger.info("Using in-memory session store")
    return MemoryKeyValueStore()
