"""Storage extension interface and the in-memory implementation."""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod

from loguru import logger

from intex.core.types import Message


class StorageExtension(ABC):
    """
    Conversation-history store keyed by conversation id.

    Implementations may raise freely; the framework only ever talks to them
    through ``StorageManager``, which logs and absorbs failures.
    """

    id: str = ""
    name: str = ""
    description: str = ""

    async def initialize(self) -> None:
        pass

    @abstractmethod
    async def get_conversation_history(self, conversation_id: str) -> list[Message]:
        """Return the stored transcript (empty when unknown)."""

    @abstractmethod
    async def update_conversation_history(self, conversation_id: str, messages: list[Message]) -> None:
        """Replace the stored transcript with *messages*."""

    @abstractmethod
    async def clear_conversation_history(self, conversation_id: str) -> None:
        """Forget the conversation."""

    async def shutdown(self) -> None:
        pass


class InMemoryStorageExtension(StorageExtension):
    """Dict-backed store for demos and tests. Stores and returns copies."""

    def __init__(
        self,
        id: str = "in-memory-storage",
        name: str = "In-Memory Storage",
        description: str = "Simple in-memory storage for conversation history",
    ) -> None:
        self.id = id
        self.name = name
        self.description = description
        self._store: dict[str, list[Message]] = {}

    async def initialize(self) -> None:
        logger.debug(f"Initializing storage extension {self.id}")

    async def get_conversation_history(self, conversation_id: str) -> list[Message]:
        return copy.deepcopy(self._store.get(conversation_id, []))

    async def update_conversation_history(self, conversation_id: str, messages: list[Message]) -> None:
        self._store[conversation_id] = copy.deepcopy(messages)

    async def clear_conversation_history(self, conversation_id: str) -> None:
        self._store.pop(conversation_id, None)

    async def shutdown(self) -> None:
        logger.debug(f"Shutting down storage extension {self.id}")
        self._store.clear()

    # ── extras ──

    @property
    def size(self) -> int:
        return len(self._store)

    def conversation_ids(self) -> list[str]:
        return list(self._store)

    def clear_all(self) -> None:
        self._store.clear()
