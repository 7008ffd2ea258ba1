"""TTL key/value cache exposed as a plugin."""

import time
from typing import Any

from loguru import logger

from intex.plugins.base import Plugin

DEFAULT_TTL_SECONDS = 60.0


class MemoryCachePlugin(Plugin):
    """
    In-memory cache with per-entry expiry.

    Entries are stored as ``{key: (value, expire_at)}`` on the monotonic clock
    and evicted lazily on read. ``shutdown`` drops everything.
    """

    def __init__(
        self,
        id: str = "memory-cache",
        name: str = "Memory Cache",
        description: str = "In-memory key/value cache with TTL",
        default_ttl: float = DEFAULT_TTL_SECONDS,
        priority: int = 0,
    ) -> None:
        super().__init__(id=id, name=name, description=description, priority=priority)
        self.default_ttl = default_ttl
        self._mem: dict[str, tuple[Any, float]] = {}

    async def initialize(self) -> None:
        logger.info(f"Cache plugin {self.id} initialized")

    async def shutdown(self) -> None:
        self._mem.clear()
        logger.info(f"Cache plugin {self.id} shut down")

    async def get(self, key: str) -> Any | None:
        entry = self._mem.get(key)
        if entry is None:
            return None
        value, expire_at = entry
        if time.monotonic() >= expire_at:
            del self._mem[key]
            return None
        return value

    async def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store *value*; *ttl* in seconds, falling back to ``default_ttl``."""
        self._mem[key] = (value, time.monotonic() + (ttl or self.default_ttl))

    async def delete(self, key: str) -> None:
        self._mem.pop(key, None)

    async def clear(self) -> None:
        self._mem.clear()
