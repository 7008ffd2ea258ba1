"""Entity extraction from intent patterns or via the completion provider."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass

from loguru import logger

from intex.core.types import Intent
from intex.providers.base import LLMProvider
from intex.utils.pattern_matcher import compile_pattern, placeholder_names

PATTERN_ENTITY_CONFIDENCE = 0.9
LLM_ENTITY_CONFIDENCE = 0.7


@dataclass(frozen=True, slots=True)
class Entity:
    name: str
    value: str
    confidence: float


def extract_entities_from_pattern(user_message: str, intent: Intent) -> dict[str, Entity] | None:
    """Fill ``{name}`` placeholders from the first placeholder pattern that matches."""
    for pattern in intent.patterns:
        if not placeholder_names(pattern):
            continue
        try:
            regex = compile_pattern(pattern)
        except re.error as e:
            logger.warning(f"Invalid regex pattern in intent {intent.id}: {pattern!r} ({e})")
            continue
        match = regex.search(user_message)
        if match is None:
            continue
        return {
            name: Entity(name=name, value=value.strip(), confidence=PATTERN_ENTITY_CONFIDENCE)
            for name, value in match.groupdict().items()
            if value is not None
        }
    return None


async def extract_entities_with_llm(
    user_message: str,
    intent: Intent,
    provider: LLMProvider,
    model: str | None = None,
) -> dict[str, Entity] | None:
    """Ask the completion provider for the placeholder values.

    Returns None when the intent declares no placeholders or anything fails.
    """
    needed: list[str] = []
    for pattern in intent.patterns:
        for name in placeholder_names(pattern):
            if name not in needed:
                needed.append(name)
    if not needed:
        return None

    prompt = (
        "Extract the following entities from the user message:\n"
        + "\n".join(f"- {name}" for name in needed)
        + f'\n\nUser message: "{user_message}"\n\n'
        "Return a JSON object where each key is an entity name and each value is the "
        "extracted value.\nOnly include entities that are actually present in the message."
    )

    try:
        response = await provider.chat(
            messages=[{"role": "user", "content": prompt}],
            model=model,
            temperature=0.1,
        )
    except Exception as e:
        logger.error(f"Error calling completion provider for entity extraction: {e}")
        return None

    if not response.content:
        return None
    try:
        extracted = json.loads(response.content)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse entity extraction response: {e}")
        return None
    if not isinstance(extracted, dict):
        return None

    return {
        name: Entity(name=name, value=str(value), confidence=LLM_ENTITY_CONFIDENCE)
        for name, value in extracted.items()
        if value is not None
    }
