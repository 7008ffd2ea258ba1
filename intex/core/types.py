"""Core data model: intents, contracts, functions and the per-turn envelope."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Literal

from intex.utils.aio import maybe_await

FallbackBehavior = Literal["reject", "askUser", "delegate"]

# A transcript turn in the completion provider's chat shape
# ({"role": ..., "content": ..., "tool_calls"?: [...], "tool_call_id"?: ...}).
Message = dict[str, Any]


@dataclass(frozen=True, slots=True)
class Intent:
    """A named user-goal category. Immutable once built."""

    id: str
    name: str
    description: str
    patterns: tuple[str, ...] = ()
    examples: tuple[str, ...] = ()
    priority: int = 0

    def __post_init__(self) -> None:
        # Accept lists from callers but store tuples so the intent stays immutable.
        object.__setattr__(self, "patterns", tuple(self.patterns))
        object.__setattr__(self, "examples", tuple(self.examples))


@dataclass
class IntentContext:
    """Auxiliary data injected into a turn by middleware or a context provider."""

    id: str
    data: Any = None
    metadata: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)


Handler = Callable[..., Any]
ContextProvider = Callable[[], "IntentContext | Awaitable[IntentContext]"]


@dataclass(slots=True)
class IntentFunction:
    """A schema-described operation exposed to the completion provider as a tool.

    ``name`` is the tool lookup key and must be unique within one contract.
    ``id`` defaults to ``name``. The handler receives the parsed arguments and,
    only when ``requires_context`` is set, the injected context as a second
    positional argument. It may be sync or async.
    """

    name: str
    description: str
    parameters: dict[str, Any]
    handler: Handler
    id: str = ""
    requires_context: bool = False

    def __post_init__(self) -> None:
        if not self.id:
            self.id = self.name


@dataclass(frozen=True, slots=True)
class MiddlewareResult:
    """Outcome of one middleware step.

    ``proceed=False`` halts the chain; ``modified_context`` (if set) replaces
    the turn's injected context before anything downstream runs.
    """

    proceed: bool = True
    modified_context: IntentContext | None = None


MiddlewareFn = Callable[
    [Intent, str, "IntentContext | None"],
    "MiddlewareResult | Awaitable[MiddlewareResult]",
]


@dataclass(frozen=True, slots=True)
class Middleware:
    """A pre-dispatch gate/transform evaluated for a matched intent."""

    id: str
    execute: MiddlewareFn

    async def run(
        self, intent: Intent, user_message: str, context: IntentContext | None
    ) -> MiddlewareResult:
        return await maybe_await(self.execute(intent, user_message, context))


@dataclass
class IntentContract:
    """Binds one intent to its functions, middleware and context provider."""

    intent: Intent
    functions: list[IntentFunction] = field(default_factory=list)
    context_provider: ContextProvider | None = None
    middleware: list[Middleware] = field(default_factory=list)
    fallback: FallbackBehavior | None = None  # declared only, never enforced


@dataclass(frozen=True, slots=True)
class IntentDetectionResult:
    intent: Intent
    confidence: float
    matched_pattern: str | None = None
    extracted_entities: dict[str, Any] | None = None


@dataclass(frozen=True, slots=True)
class FunctionCall:
    """One tool invocation attempt. Never mutated after it is recorded.

    ``function_id`` is the provider's tool-call id, used to correlate the tool
    result turn with the request. ``error`` is set exactly when the call
    failed; otherwise ``result`` holds whatever the handler returned, which
    may itself be ``None``. Use ``succeeded`` rather than testing ``result``.
    """

    function_id: str
    function_name: str
    parameters: Any
    result: Any = None
    error: str | None = None
    execution_time: int = 0  # milliseconds

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class ExecutionContext:
    """Mutable envelope for one ``process`` call."""

    conversation_id: str
    user_message: str
    user_id: str | None = None
    detected_intent: IntentDetectionResult | None = None
    injected_context: IntentContext | None = None
    function_calls: list[FunctionCall] = field(default_factory=list)
    messages: list[Message] = field(default_factory=list)

    def add_message(self, message: Message) -> None:
        self.messages.append(message)

    def record_function_call(self, call: FunctionCall) -> None:
        self.function_calls.append(call)


@dataclass(frozen=True, slots=True)
class ResponseMetadata:
    intent_detected: bool
    functions_executed: int
    total_execution_time: int  # milliseconds
    confidence: float | None = None


@dataclass(frozen=True, slots=True)
class FrameworkResponse:
    """The uniform envelope returned by every terminal state of ``process``."""

    response: str
    execution_context: ExecutionContext
    metadata: ResponseMetadata
