"""intex - intent + context orchestration for function-calling LLMs."""

__version__ = "1.0.0"
__logo__ = "🧭"

from intex.core.framework import IntentFramework
from intex.core.types import (
    ExecutionContext,
    FrameworkResponse,
    FunctionCall,
    Intent,
    IntentContext,
    IntentContract,
    IntentDetectionResult,
    IntentFunction,
    Middleware,
    MiddlewareResult,
    ResponseMetadata,
)
from intex.builders import IntentBuilder, IntentContractBuilder, create_function, create_intent
from intex.middleware import (
    create_auth_middleware,
    create_logging_middleware,
    create_middleware,
    create_rate_limit_middleware,
)
from intex.plugins import Hook, Plugin, PluginManager
from intex.utils import estimate_function_tokens, estimate_messages_tokens, estimate_tokens
from intex.utils.entity_extractor import Entity, extract_entities_from_pattern, extract_entities_with_llm
from intex.utils.pattern_matcher import PatternMatch, fuzzy_match_pattern, match_pattern_with_groups
from intex.utils.validation import validate_contract

__all__ = [
    "__version__",
    "IntentFramework",
    "ExecutionContext",
    "FrameworkResponse",
    "FunctionCall",
    "Intent",
    "IntentContext",
    "IntentContract",
    "IntentDetectionResult",
    "IntentFunction",
    "Middleware",
    "MiddlewareResult",
    "ResponseMetadata",
    "IntentBuilder",
    "IntentContractBuilder",
    "create_function",
    "create_intent",
    "create_middleware",
    "create_logging_middleware",
    "create_auth_middleware",
    "create_rate_limit_middleware",
    "Hook",
    "Plugin",
    "PluginManager",
    "validate_contract",
    "estimate_tokens",
    "estimate_messages_tokens",
    "estimate_function_tokens",
    "Entity",
    "extract_entities_from_pattern",
    "extract_entities_with_llm",
    "PatternMatch",
    "match_pattern_with_groups",
    "fuzzy_match_pattern",
]
