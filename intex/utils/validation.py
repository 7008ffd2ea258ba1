"""Static checks for intent contracts before registration."""

from __future__ import annotations

from intex.core.types import IntentContract


def validate_contract(contract: IntentContract) -> list[str]:
    """Return human-readable problems with *contract*; an empty list means valid."""
    errors: list[str] = []

    intent = contract.intent
    if intent is None:
        errors.append("Contract is missing intent")
    else:
        if not intent.id:
            errors.append("Intent is missing id")
        if not intent.name:
            errors.append("Intent is missing name")
        if not intent.description:
            errors.append("Intent is missing description")
        if not intent.patterns:
            errors.append("Intent has no patterns defined")
        if not intent.examples:
            errors.append("Intent has no examples defined - examples help with LLM detection")

    if not contract.functions:
        errors.append("Contract has no functions defined")
        return errors

    for index, func in enumerate(contract.functions):
        label = func.name or f"at index {index}"
        if not func.name:
            errors.append(f"Function at index {index} is missing name")
        if not func.description:
            errors.append(f"Function {label} is missing description")
        if not func.parameters:
            errors.append(f"Function {label} is missing parameters")
        if not callable(func.handler):
            errors.append(f"Function {label} is missing handler")

    names = [f.name for f in contract.functions if f.name]
    for name in sorted({n for n in names if names.count(n) > 1}):
        errors.append(f"Function name {name} is used more than once")

    return errors
