"""Per-conversation lock so turns for one conversation run one at a time.

Uses a Redis lock when a client is supplied (serializing across processes)
and an in-process asyncio lock otherwise, or when Redis itself errors. A
Redis key held elsewhere past the timeout raises ConversationLockTimeout.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from loguru import logger
from redis.asyncio import Redis
from redis.exceptions import RedisError

from intex.core.errors import ConversationLockTimeout


class ConversationLock:
    def __init__(
        self,
        redis: Redis | None = None,
        ttl_seconds: int = 30,
        timeout: float = 5.0,
        key_prefix: str = "intex:lock:",
    ) -> None:
        self._redis = redis
        self._ttl = ttl_seconds
        self._timeout = timeout
        self._prefix = key_prefix
        self._local: dict[str, asyncio.Lock] = {}

    def is_locked(self, conversation_id: str) -> bool:
        """Whether the in-process lock for *conversation_id* is currently held."""
        local = self._local.get(conversation_id)
        return local is not None and local.locked()

    @asynccontextmanager
    async def acquire(self, conversation_id: str, timeout: float | None = None) -> AsyncIterator[None]:
        timeout = self._timeout if timeout is None else timeout

        if self._redis is not None:
            rlock = self._redis.lock(f"{self._prefix}{conversation_id}", timeout=self._ttl)
            try:
                acquired = await rlock.acquire(blocking=True, blocking_timeout=timeout)
            except RedisError as e:
                logger.warning(f"Redis lock unavailable for {conversation_id}, using local lock: {e}")
            else:
                if not acquired:
                    # Held by another process for the whole wait.
                    raise ConversationLockTimeout(f"lock timeout: {conversation_id}")
                try:
                    yield
                finally:
                    try:
                        await rlock.release()
                    except RedisError as e:
                        logger.debug(f"Redis lock for {conversation_id} already released: {e}")
                return

        # In-process lock (single-instance scenario)
        local = self._local.setdefault(conversation_id, asyncio.Lock())
        try:
            await asyncio.wait_for(local.acquire(), timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise ConversationLockTimeout(f"lock timeout: {conversation_id}") from exc
        try:
            yield
        finally:
            local.release()
