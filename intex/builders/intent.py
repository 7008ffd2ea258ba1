"""Intent builder."""

from __future__ import annotations

from dataclasses import dataclass, replace

from intex.builders.contract import IntentContractBuilder
from intex.core.errors import BuilderError
from intex.core.types import ContextProvider, Intent, IntentFunction


@dataclass(frozen=True, slots=True)
class IntentBuilder:
    """
    Immutable intent builder.

    Each ``with_*`` call returns a new builder, so a partially configured
    builder can be shared and extended without affecting other users::

        contract = (
            create_intent()
            .with_id("weather")
            .with_name("Weather")
            .with_description("Get the weather for a city")
            .with_patterns(r"weather in (.*)")
            .with_functions(get_weather)
            .build()
        )
    """

    id: str = ""
    name: str = ""
    description: str = ""
    patterns: tuple[str, ...] = ()
    examples: tuple[str, ...] = ()
    priority: int = 0

    def with_id(self, id: str) -> "IntentBuilder":
        return replace(self, id=id)

    def with_name(self, name: str) -> "IntentBuilder":
        return replace(self, name=name)

    def with_description(self, description: str) -> "IntentBuilder":
        return replace(self, description=description)

    def with_patterns(self, *patterns: str) -> "IntentBuilder":
        return replace(self, patterns=self.patterns + patterns)

    def with_examples(self, *examples: str) -> "IntentBuilder":
        return replace(self, examples=self.examples + examples)

    def with_priority(self, priority: int) -> "IntentBuilder":
        return replace(self, priority=priority)

    def with_context(self, provider: ContextProvider) -> IntentContractBuilder:
        return IntentContractBuilder(intent=self.build(), context_provider=provider)

    def with_functions(self, *functions: IntentFunction) -> IntentContractBuilder:
        return IntentContractBuilder(intent=self.build(), functions=functions)

    def build(self) -> Intent:
        if not self.id or not self.name or not self.description:
            raise BuilderError("Intent must have id, name, and description")
        return Intent(
            id=self.id,
            name=self.name,
            description=self.description,
            patterns=self.patterns,
            examples=self.examples,
            priority=self.priority,
        )


def create_intent() -> IntentBuilder:
    return IntentBuilder()
