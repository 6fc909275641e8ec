"""
Output Processing Module

Parses classifier responses into per-query intents.

Components:
- IntentResponseParser: Layered JSON parsing with positional defaults
- IntentParseResult: Parsed intents plus how they were obtained
"""

from .parser import (
    IntentResponseParser,
    IntentParseResult,
    normalize_category,
)

__all__ = [
    "IntentResponseParser",
    "IntentParseResult",
    "normalize_category",
]
