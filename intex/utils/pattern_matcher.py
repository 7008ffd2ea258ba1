"""Regex helpers shared by intent detection and entity extraction."""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Sequence

from loguru import logger

from intex.core.types import Intent

# "{city}" → named group; quantifiers such as "{2,3}" are left alone.
PLACEHOLDER_RE = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")
_PLACEHOLDER_GROUP = r"(?P<\1>[a-zA-Z0-9 ]+)"

GROUP_MATCH_CONFIDENCE = 0.9
DEFAULT_FUZZY_THRESHOLD = 0.7


@dataclass(frozen=True, slots=True)
class PatternMatch:
    intent: Intent
    confidence: float
    matched_pattern: str
    match_groups: tuple[str | None, ...] = ()


@lru_cache(maxsize=1024)
def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile an intent pattern case-insensitively, expanding ``{name}`` placeholders.

    Raises ``re.error`` for malformed patterns.
    """
    return re.compile(PLACEHOLDER_RE.sub(_PLACEHOLDER_GROUP, pattern), re.IGNORECASE)


def placeholder_names(pattern: str) -> list[str]:
    return PLACEHOLDER_RE.findall(pattern)


def match_pattern_with_groups(user_message: str, intents: Sequence[Intent]) -> PatternMatch | None:
    """First pattern (in intent order) that matches, with its capture groups."""
    for intent in intents:
        for pattern in intent.patterns:
            try:
                regex = compile_pattern(pattern)
            except re.error as e:
                logger.warning(f"Invalid regex pattern in intent {intent.id}: {pattern!r} ({e})")
                continue
            match = regex.search(user_message)
            if match:
                return PatternMatch(
                    intent=intent,
                    confidence=GROUP_MATCH_CONFIDENCE,
                    matched_pattern=pattern,
                    match_groups=match.groups(),
                )
    return None


def fuzzy_match_pattern(
    user_message: str,
    intents: Sequence[Intent],
    threshold: float = DEFAULT_FUZZY_THRESHOLD,
) -> PatternMatch | None:
    """Word-overlap match: share of pattern words present in the message."""
    words = set(user_message.lower().split())

    best: PatternMatch | None = None
    best_score = 0.0
    for intent in intents:
        for pattern in intent.patterns:
            pattern_words = pattern.lower().split()
            if not pattern_words:
                continue
            score = sum(1 for w in pattern_words if w in words) / len(pattern_words)
            if score > best_score and score >= threshold:
                best_score = score
                best = PatternMatch(intent=intent, confidence=score, matched_pattern=pattern)
    return best
