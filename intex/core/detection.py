"""Intent detection: regex scoring, completion-based classification, strategy selection."""

from __future__ import annotations

import json
import re
from enum import Enum
from typing import Any, Sequence

from loguru import logger

from intex.config.schema import IntentDetectionConfig
from intex.core.types import Intent, IntentDetectionResult
from intex.providers.base import LLMProvider
from intex.utils.pattern_matcher import compile_pattern

DEFAULT_PATTERN_THRESHOLD = 0.3
DEFAULT_HYBRID_THRESHOLD = 0.7
DEFAULT_LLM_THRESHOLD = 0.5
LLM_DETECTION_TEMPERATURE = 0.1
LLM_MATCH_DESCRIPTION = "LLM-based detection"

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class DetectionStrategy(str, Enum):
    PATTERN = "pattern"
    LLM = "llm"
    HYBRID = "hybrid"
    EMBEDDING = "embedding"  # declared only; behaves as PATTERN

    @classmethod
    def parse(cls, value: str | None) -> "DetectionStrategy":
        """Unrecognized values fall back to PATTERN rather than erroring."""
        try:
            return cls((value or "").lower())
        except ValueError:
            logger.warning(f"Unknown intent detection strategy {value!r}; using 'pattern'")
            return cls.PATTERN


def detect_intent_by_pattern(
    user_message: str,
    intents: Sequence[Intent],
    confidence_threshold: float | None = None,
) -> IntentDetectionResult | None:
    """Return the best regex match across all intents, or None.

    Score is ``len(pattern) / len(message)``; confidence is ``min(score * 2, 1)``.
    Iteration follows *intents* then pattern order and only a strictly higher
    score replaces the current best, so the first-seen match wins ties.
    Malformed patterns are logged and skipped.
    """
    threshold = DEFAULT_PATTERN_THRESHOLD if confidence_threshold is None else confidence_threshold
    if not user_message:
        return None

    best: IntentDetectionResult | None = None
    highest_score = 0.0

    for intent in intents:
        for pattern in intent.patterns:
            try:
                regex = compile_pattern(pattern)
            except re.error as e:
                logger.warning(f"Skipping invalid pattern {pattern!r} in intent {intent.id}: {e}")
                continue

            match = regex.search(user_message)
            if match is None:
                continue

            score = len(pattern) / len(user_message)
            if score > highest_score:
                highest_score = score
                entities = {k: v.strip() for k, v in match.groupdict().items() if v is not None}
                best = IntentDetectionResult(
                    intent=intent,
                    confidence=min(score * 2, 1.0),
                    matched_pattern=pattern,
                    extracted_entities=entities or None,
                )

    if best is not None and best.confidence >= threshold:
        return best
    return None


def build_classification_prompt(user_message: str, intents: Sequence[Intent]) -> str:
    """Prompt asking the completion provider to pick one intent as strict JSON."""
    listing = "\n".join(
        f"\n- ID: {intent.id}\n"
        f"- Name: {intent.name}\n"
        f"- Description: {intent.description}\n"
        f"- Examples: {', '.join(intent.examples)}\n"
        for intent in intents
    )
    return (
        "You are an intent classification system. Given a user message and a list of "
        "possible intents, determine which intent best matches the user's message.\n\n"
        f'User message: "{user_message}"\n\n'
        f"Available intents:\n{listing}\n"
        "Respond with a JSON object containing:\n"
        "- intentId: the ID of the best matching intent (or null if no good match)\n"
        "- confidence: a number between 0 and 1 indicating confidence\n"
        "- reasoning: brief explanation of why this intent was chosen\n\n"
        "If no intent matches well (confidence < 0.5), return intentId as null.\n"
        "Respond with the JSON object only."
    )


def parse_json_reply(content: str | None) -> dict[str, Any] | None:
    """Parse a JSON object reply, tolerating a surrounding Markdown fence."""
    if not content:
        return None
    text = _FENCE_RE.sub("", content.strip())
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


async def detect_intent_by_llm(
    user_message: str,
    intents: Sequence[Intent],
    provider: LLMProvider,
    model: str | None = None,
    confidence_threshold: float | None = None,
) -> IntentDetectionResult | None:
    """Ask the completion provider to classify *user_message*.

    Never raises: provider failures, unparseable replies, unknown intent ids and
    low confidence all yield None.
    """
    threshold = DEFAULT_LLM_THRESHOLD if confidence_threshold is None else confidence_threshold
    if not intents:
        return None

    prompt = build_classification_prompt(user_message, intents)
    try:
        response = await provider.chat(
            messages=[{"role": "user", "content": prompt}],
            model=model,
            temperature=LLM_DETECTION_TEMPERATURE,
        )
    except Exception as e:
        logger.error(f"LLM intent detection failed: {e}")
        return None

    result = parse_json_reply(response.content)
    if result is None:
        logger.warning("LLM intent detection returned an unparseable reply")
        return None

    intent_id = result.get("intentId")
    confidence = result.get("confidence")
    if not intent_id or isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        return None
    if confidence < threshold:
        return None

    matched = next((intent for intent in intents if intent.id == intent_id), None)
    if matched is None:
        logger.warning(f"LLM intent detection chose unknown intent {intent_id!r}")
        return None

    logger.debug(f"LLM detected intent {matched.id} ({confidence}): {result.get('reasoning', '')}")
    return IntentDetectionResult(
        intent=matched,
        confidence=float(confidence),
        matched_pattern=LLM_MATCH_DESCRIPTION,
    )


class IntentDetector:
    """Combines pattern and completion-based detection per configured strategy.

    ``hybrid`` runs the pattern matcher first and returns its result without
    calling the provider when the confidence clears the hybrid threshold.
    """

    def __init__(
        self,
        config: IntentDetectionConfig,
        provider: LLMProvider,
        model: str | None = None,
    ) -> None:
        self.config = config
        self.provider = provider
        self.model = model
        self.strategy = DetectionStrategy.parse(config.strategy)

    async def detect(self, user_message: str, intents: Sequence[Intent]) -> IntentDetectionResult | None:
        threshold = self.config.confidence_threshold

        if self.strategy is DetectionStrategy.LLM:
            return await detect_intent_by_llm(user_message, intents, self.provider, self.model, threshold)

        if self.strategy is DetectionStrategy.HYBRID:
            pattern_result = detect_intent_by_pattern(user_message, intents, threshold)
            cutoff = DEFAULT_HYBRID_THRESHOLD if threshold is None else threshold
            if pattern_result is not None and pattern_result.confidence >= cutoff:
                return pattern_result
            return await detect_intent_by_llm(user_message, intents, self.provider, self.model, threshold)

        return detect_intent_by_pattern(user_message, intents, threshold)
