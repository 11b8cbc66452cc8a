"""Redis-based state manager shared by all engine components."""

import json
from typing import Any, Awaitable, Callable, TypeVar

import redis.asyncio as redis
from redis.exceptions import WatchError

from ecoplate.config import get_settings
from ecoplate.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def _encode(value: Any) -> Any:
    # Serialize complex objects to JSON
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return value


def _decode(value: Any) -> Any:
    if value is None:
        return None
    try:
        return json.loads(value)
    except (json.JSONDecodeError, TypeError):
        return value


class Transaction:
    """
    One optimistic unit of work.

    Reads run immediately against watched keys. The first write switches the
    pipeline into MULTI mode, after which only writes may be queued; they are
    committed together when the unit of work returns.
    """

    def __init__(self, pipe: redis.client.Pipeline):
        self._pipe = pipe
        self.pending = False

    def _check_reads_allowed(self) -> None:
        if self.pending:
            raise RuntimeError("Reads must happen before the first write in a transaction")

    def _writer(self) -> redis.client.Pipeline:
        if not self.pending:
            self._pipe.multi()
            self.pending = True
        return self._pipe

    async def watch(self, *keys: str) -> None:
        """Add keys discovered during the read phase to the watch set."""
        self._check_reads_allowed()
        await self._pipe.watch(*keys)

    async def get(self, key: str) -> Any:
        self._check_reads_allowed()
        return _decode(await self._pipe.get(key))

    async def exists(self, key: str) -> bool:
        self._check_reads_allowed()
        return bool(await self._pipe.exists(key))

    async def hgetall(self, key: str) -> dict[str, str]:
        self._check_reads_allowed()
        return await self._pipe.hgetall(key)

    def set(self, key: str, value: Any) -> None:
        self._writer().set(key, _encode(value))

    def delete(self, *keys: str) -> None:
        self._writer().delete(*keys)

    def hset(self, key: str, mapping: dict[str, Any]) -> None:
        self._writer().hset(key, mapping=mapping)

    def hincrby(self, key: str, field: str, amount: int = 1) -> None:
        self._writer().hincrby(key, field, amount)

    def zadd(self, key: str, mapping: dict[str, float]) -> None:
        self._writer().zadd(key, mapping)


class StateManager:
    """Centralized state management using Redis."""

    def __init__(self, redis_client: redis.Redis | None = None) -> None:
        settings = get_settings()
        self.redis_client: redis.Redis | None = redis_client
        self.redis_url = settings.redis_url

    async def connect(self) -> None:
        """Establish Redis connection."""
        if self.redis_client is None:
            self.redis_client = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            logger.info("redis_connected", url=self.redis_url)

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self.redis_client:
            await self.redis_client.aclose()
            self.redis_client = None
            logger.info("redis_disconnected")

    async def _client(self) -> redis.Redis:
        if not self.redis_client:
            await self.connect()
        return self.redis_client

    async def transaction(
        self,
        func: Callable[[Transaction], Awaitable[T]],
        *keys: str,
    ) -> T:
        """
        Run ``func`` as an atomic read-then-write unit over ``keys``.

        If any watched key changes before the commit, the unit of work is
        re-run against fresh state. Exceptions raised by ``func`` discard
        everything it queued.
        """
        client = await self._client()

        async with client.pipeline(transaction=True) as pipe:
            while True:
                try:
                    if keys:
                        await pipe.watch(*keys)
                    tx = Transaction(pipe)
                    result = await func(tx)
                    if tx.pending:
                        await pipe.execute()
                    return result
                except WatchError:
                    logger.debug("transaction_conflict_retry", keys=list(keys))
                    await pipe.reset()
                    continue

    async def set(
        self,
        key: str,
        value: Any,
        ttl: int | None = None,
    ) -> None:
        """Set a value in Redis with optional TTL."""
        client = await self._client()

        await client.set(key, _encode(value), ex=ttl)

        logger.debug("state_set", key=key, ttl=ttl)

    async def get(self, key: str) -> Any:
        """Get a value from Redis."""
        client = await self._client()
        return _decode(await client.get(key))

    async def mget(self, keys: list[str]) -> list[Any]:
        """Get several values in one round trip."""
        if not keys:
            return []
        client = await self._client()
        return [_decode(value) for value in await client.mget(keys)]

    async def hgetall(self, key: str) -> dict[str, str]:
        """Get all hash fields."""
        client = await self._client()
        return await client.hgetall(key)

    async def hset(self, key: str, mapping: dict[str, Any]) -> None:
        """Set several hash fields."""
        client = await self._client()
        await client.hset(key, mapping=mapping)

    async def zadd(
        self,
        key: str,
        mapping: dict[str, float],
    ) -> None:
        """Add members to a sorted set."""
        client = await self._client()
        await client.zadd(key, mapping)

    async def zrange(
        self,
        key: str,
        start: int = 0,
        end: int = -1,
        desc: bool = False,
    ) -> list[str]:
        """Get members from a sorted set."""
        client = await self._client()
        return await client.zrange(key, start, end, desc=desc)

    async def flush(self) -> None:
        """Drop every key in the current database."""
        client = await self._client()
        await client.flushdb()
        logger.info("state_flushed")


# Global state manager instance
_state_manager: StateManager | None = None


async def get_state_manager() -> StateManager:
    """Get the global state manager instance."""
    global _state_manager
    if _state_manager is None:
        _state_manager = StateManager()
        await _state_manager.connect()
    return _state_manager
