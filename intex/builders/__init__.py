"""Immutable builders for intents, functions and contracts."""

from intex.builders.contract import IntentContractBuilder
from intex.builders.function import create_function
from intex.builders.intent import IntentBuilder, create_intent

__all__ = ["IntentBuilder", "IntentContractBuilder", "create_intent", "create_function"]
