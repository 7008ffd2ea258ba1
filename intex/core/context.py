"""Context provider invocation and per-conversation context retention."""

from __future__ import annotations

from collections import defaultdict, deque

from loguru import logger

from intex.config.schema import ContextRetentionConfig
from intex.core.types import ContextProvider, IntentContext
from intex.utils.aio import maybe_await


async def provide_context(provider: ContextProvider, intent_id: str) -> IntentContext | None:
    """Call a contract's context provider; failures are logged and yield None."""
    try:
        return await maybe_await(provider())
    except Exception as e:
        logger.error(f"Context provider for intent {intent_id} failed: {e}")
        return None


class ContextRetention:
    """Bounded FIFO history of injected contexts per conversation.

    Disabled retention records nothing. ``ttl`` is accepted in the config but
    no age-based eviction exists.
    """

    def __init__(self, config: ContextRetentionConfig) -> None:
        self.config = config
        self._contexts: dict[str, deque[IntentContext]] = defaultdict(
            lambda: deque(maxlen=config.max_contexts)
        )

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    def retain(self, conversation_id: str, context: IntentContext) -> None:
        if self.config.enabled:
            self._contexts[conversation_id].append(context)

    def get(self, conversation_id: str) -> list[IntentContext]:
        """Retained contexts, oldest first."""
        contexts = self._contexts.get(conversation_id)
        return list(contexts) if contexts else []

    def clear(self, conversation_id: str) -> None:
        self._contexts.pop(conversation_id, None)

    def clear_all(self) -> None:
        self._contexts.clear()
