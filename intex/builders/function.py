"""Function definition helper."""

from __future__ import annotations

from typing import Any

from intex.core.types import Handler, IntentFunction


def create_function(
    name: str,
    description: str,
    parameters: dict[str, Any],
    handler: Handler,
    id: str | None = None,
    requires_context: bool = False,
) -> IntentFunction:
    """Build an ``IntentFunction``; ``id`` defaults to ``name``."""
    return IntentFunction(
        name=name,
        description=description,
        parameters=parameters,
        handler=handler,
        id=id or name,
        requires_context=requires_context,
    )
