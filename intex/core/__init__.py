"""Orchestration core: data model, detection, dispatch and the framework."""

from intex.core.errors import ContractNotFoundError, IntexError
from intex.core.types import (
    ExecutionContext,
    FrameworkResponse,
    FunctionCall,
    Intent,
    IntentContext,
    IntentContract,
    IntentDetectionResult,
    IntentFunction,
)

__all__ = [
    "IntexError",
    "ContractNotFoundError",
    "ExecutionContext",
    "FrameworkResponse",
    "FunctionCall",
    "Intent",
    "IntentContext",
    "IntentContract",
    "IntentDetectionResult",
    "IntentFunction",
]
