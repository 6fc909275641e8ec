"""
Intent Analysis Module

Components:
- ClaudeClient: Async Anthropic wrapper with usage tracking
- ClaudeIntentClassifier: One batched classification call per report
- IntentAnnotator: Attaches intents to reconciled rows, degrading to defaults
"""

from .client import ClaudeClient, CompletionResponse, TokenUsage
from .intent import (
    IntentClassifier,
    ClaudeIntentClassifier,
    IntentClassificationError,
    IntentAnnotator,
    AnnotationResult,
    build_intent_prompt,
    distinct_queries,
)

__all__ = [
    "ClaudeClient",
    "CompletionResponse",
    "TokenUsage",
    "IntentClassifier",
    "ClaudeIntentClassifier",
    "IntentClassificationError",
    "IntentAnnotator",
    "AnnotationResult",
    "build_intent_prompt",
    "distinct_queries",
]
