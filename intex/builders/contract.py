"""Contract builder."""

from __future__ import annotations

from dataclasses import dataclass, replace

from intex.core.errors import BuilderError
from intex.core.types import (
    ContextProvider,
    FallbackBehavior,
    Intent,
    IntentContract,
    IntentFunction,
    Middleware,
)


@dataclass(frozen=True, slots=True)
class IntentContractBuilder:
    """Immutable contract builder: every ``with_*`` returns a new builder."""

    intent: Intent | None = None
    functions: tuple[IntentFunction, ...] = ()
    middleware: tuple[Middleware, ...] = ()
    context_provider: ContextProvider | None = None
    fallback: FallbackBehavior | None = None

    def with_functions(self, *functions: IntentFunction) -> "IntentContractBuilder":
        return replace(self, functions=self.functions + functions)

    def with_middleware(self, *middleware: Middleware) -> "IntentContractBuilder":
        return replace(self, middleware=self.middleware + middleware)

    def with_context(self, provider: ContextProvider) -> "IntentContractBuilder":
        return replace(self, context_provider=provider)

    def with_fallback(self, fallback: FallbackBehavior) -> "IntentContractBuilder":
        return replace(self, fallback=fallback)

    def build(self) -> IntentContract:
        if self.intent is None:
            raise BuilderError("Contract must have an intent")
        return IntentContract(
            intent=self.intent,
            functions=list(self.functions),
            context_provider=self.context_provider,
            middleware=list(self.middleware),
            fallback=self.fallback,
        )
