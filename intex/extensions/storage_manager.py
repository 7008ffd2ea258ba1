"""Best-effort wrapper around the optional storage extension."""

from __future__ import annotations

from loguru import logger

from intex.core.types import Message
from intex.extensions.storage import StorageExtension


class StorageManager:
    """
    The framework's only path to conversation storage.

    With no extension configured every call is a no-op and reads return an
    empty history (stateless mode). Extension failures are logged and
    absorbed: a failed read yields ``[]``, failed writes/clears are dropped.
    """

    def __init__(self, storage: StorageExtension | None = None) -> None:
        self.storage = storage

    @property
    def is_stateless(self) -> bool:
        return self.storage is None

    async def initialize(self) -> None:
        if self.storage is None:
            logger.info("No storage extension provided, operating in stateless mode")
            return
        try:
            await self.storage.initialize()
            logger.info(f"Storage extension initialized: {self.storage.id or type(self.storage).__name__}")
        except Exception as e:
            logger.error(f"Failed to initialize storage extension: {e}")

    async def get_conversation_history(self, conversation_id: str) -> list[Message]:
        if self.storage is None:
            return []
        try:
            return list(await self.storage.get_conversation_history(conversation_id))
        except Exception as e:
            logger.error(f"Failed to get conversation history for {conversation_id}: {e}")
            return []

    async def update_conversation_history(self, conversation_id: str, messages: list[Message]) -> None:
        if self.storage is None:
            return
        try:
            await self.storage.update_conversation_history(conversation_id, messages)
        except Exception as e:
            logger.error(f"Failed to update conversation history for {conversation_id}: {e}")

    async def clear_conversation_history(self, conversation_id: str) -> None:
        if self.storage is None:
            return
        try:
            await self.storage.clear_conversation_history(conversation_id)
        except Exception as e:
            logger.error(f"Failed to clear conversation history for {conversation_id}: {e}")

    async def shutdown(self) -> None:
        if self.storage is None:
            return
        try:
            await self.storage.shutdown()
        except Exception as e:
            logger.error(f"Failed to shut down storage extension: {e}")
