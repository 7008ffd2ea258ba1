"""Exception types raised by the orchestration core."""


class IntexError(Exception):
    """Base class for all intex errors."""


class ContractNotFoundError(IntexError):
    """A detected intent has no registered contract."""

    def __init__(self, intent_id: str) -> None:
        super().__init__(f"No contract found for intent: {intent_id}")
        self.intent_id = intent_id


class PluginRegistrationError(IntexError):
    """Raised when a plugin id is registered twice."""


class PluginDependencyError(IntexError):
    """Raised when plugin dependencies form a cycle."""


class CompletionProviderError(IntexError):
    """The completion provider call failed (network, auth, malformed reply)."""


class BuilderError(IntexError):
    """A builder was asked to build an incomplete object."""


class ConversationLockTimeout(IntexError):
    """Raised when the per-conversation lock cannot be acquired in time."""
