"""Runtime helpers for serving concurrent conversations."""

from intex.runtime.conversation_lock import ConversationLock

__all__ = ["ConversationLock"]
