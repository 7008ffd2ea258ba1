"""Plugin base class and the enumerated lifecycle hooks."""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Iterable

from intex.core.types import ExecutionContext, FrameworkResponse


class Hook(str, Enum):
    """Lifecycle hook points, in the order a turn fires them."""

    BEFORE_INTENT_DETECTION = "on_before_intent_detection"
    AFTER_INTENT_DETECTION = "on_after_intent_detection"
    BEFORE_CONTEXT_INJECTION = "on_before_context_injection"
    AFTER_CONTEXT_INJECTION = "on_after_context_injection"
    BEFORE_FUNCTION_EXECUTION = "on_before_function_execution"
    AFTER_FUNCTION_EXECUTION = "on_after_function_execution"
    BEFORE_RESPONSE_GENERATION = "on_before_response_generation"
    AFTER_RESPONSE_GENERATION = "on_after_response_generation"
    ERROR = "on_error"


class Plugin:
    """
    Out-of-band observer of the turn lifecycle.

    Subclasses override only the hooks they care about; every hook defaults
    to a no-op. Hooks may be coroutines or plain functions.

    ``dependencies`` lists plugin ids that must run before this plugin for
    every hook. Among unrelated plugins, higher ``priority`` runs first.
    """

    id: str = ""
    name: str = ""
    description: str = ""
    priority: int = 0
    dependencies: tuple[str, ...] = ()

    def __init__(
        self,
        id: str | None = None,
        name: str | None = None,
        description: str | None = None,
        priority: int | None = None,
        dependencies: Iterable[str] | None = None,
    ) -> None:
        if id is not None:
            self.id = id
        if name is not None:
            self.name = name
        if description is not None:
            self.description = description
        if priority is not None:
            self.priority = priority
        if dependencies is not None:
            self.dependencies = tuple(dependencies)
        if not self.id:
            raise ValueError(f"{type(self).__name__} needs a non-empty id")
        self.name = self.name or self.id

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, priority={self.priority})"

    # ── lifecycle ──

    async def initialize(self) -> None:
        pass

    async def shutdown(self) -> None:
        pass

    # ── hooks ──

    async def on_before_intent_detection(self, context: ExecutionContext) -> None:
        pass

    async def on_after_intent_detection(self, context: ExecutionContext) -> None:
        pass

    async def on_before_context_injection(self, context: ExecutionContext) -> None:
        pass

    async def on_after_context_injection(self, context: ExecutionContext) -> None:
        pass

    async def on_before_function_execution(
        self, context: ExecutionContext, function_id: str, parameters: Any
    ) -> None:
        pass

    async def on_after_function_execution(
        self,
        context: ExecutionContext,
        function_id: str,
        result: Any,
        error: str | None = None,
    ) -> None:
        pass

    async def on_before_response_generation(self, context: ExecutionContext) -> None:
        pass

    async def on_after_response_generation(
        self, context: ExecutionContext, response: FrameworkResponse
    ) -> None:
        pass

    async def on_error(self, error: BaseException, context: ExecutionContext | None = None) -> None:
        pass


# Hook → bound-method slot on a plugin.
HOOK_SLOTS: dict[Hook, Callable[[Plugin], Callable[..., Any]]] = {
    Hook.BEFORE_INTENT_DETECTION: lambda p: p.on_before_intent_detection,
    Hook.AFTER_INTENT_DETECTION: lambda p: p.on_after_intent_detection,
    Hook.BEFORE_CONTEXT_INJECTION: lambda p: p.on_before_context_injection,
    Hook.AFTER_CONTEXT_INJECTION: lambda p: p.on_after_context_injection,
    Hook.BEFORE_FUNCTION_EXECUTION: lambda p: p.on_before_function_execution,
    Hook.AFTER_FUNCTION_EXECUTION: lambda p: p.on_after_function_execution,
    Hook.BEFORE_RESPONSE_GENERATION: lambda p: p.on_before_response_generation,
    Hook.AFTER_RESPONSE_GENERATION: lambda p: p.on_after_response_generation,
    Hook.ERROR: lambda p: p.on_error,
}
