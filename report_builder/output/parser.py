"""
Output Parser for Intent Classification Responses

Parses the classifier's reply to a batched intent request. Expected shape is
a JSON array of {"intent": ..., "category": ...} in query order, but models
wrap JSON in prose or code fences, return a single object, or nest the
array under a key.

Fallback chain:
1. Direct JSON decode of the whole body
2. First well-formed JSON array or object embedded in free text
3. Defaults for everything that could not be parsed

Results are matched to queries by position only. If the classifier reorders
or drops entries the mapping shifts silently; nothing here tries to detect
that.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..models import IntentCategory, QueryIntent

logger = logging.getLogger(__name__)

_SENTINEL = object()

# Keys a model may nest the result list under
LIST_KEYS = ("results", "intents", "classifications", "queries", "data", "items")

_CATEGORY_LOOKUP = {category.value.lower(): category.value for category in IntentCategory}
_CATEGORY_LOOKUP["commercial"] = IntentCategory.COMMERCIAL_INVESTIGATION.value


@dataclass
class IntentParseResult:
    """Result of parsing one classifier response."""
    intents: List[QueryIntent]
    parsed_count: int
    parse_method: str  # "json", "embedded", "none"
    errors: List[str] = field(default_factory=list)

    @property
    def defaulted_count(self) -> int:
        return len(self.intents) - self.parsed_count

    @property
    def degraded(self) -> bool:
        return self.defaulted_count > 0


class IntentResponseParser:
    """
    Parses batched intent classifications.

    Usage:
        parser = IntentResponseParser()
        result = parser.parse(raw_text, expected=len(queries))
        result.intents[i]  # intent for queries[i]
    """

    def parse(self, raw_output: Optional[str], expected: int) -> IntentParseResult:
        """
        Parse raw classifier output into exactly `expected` intents.

        Args:
            raw_output: Raw text from the classifier
            expected: Number of queries that were sent

        Returns:
            IntentParseResult; missing or malformed entries are defaults
        """
        errors: List[str] = []
        decoded: Any = _SENTINEL
        method = "none"

        methods = [
            ("json", self._decode_direct),
            ("embedded", self._decode_embedded),
        ]

        text = raw_output or ""
        for method_name, decode_fn in methods:
            try:
                decoded = decode_fn(text)
                method = method_name
                break
            except ValueError as e:
                errors.append(f"{method_name}: {e}")
                logger.debug(f"{method_name} decoding failed: {e}")

        entries = self._extract_entries(decoded) if decoded is not _SENTINEL else []
        if decoded is not _SENTINEL and not entries:
            errors.append("Decoded JSON holds no classification entries")

        intents: List[QueryIntent] = []
        parsed = 0
        for index in range(expected):
            intent = self._to_intent(entries[index]) if index < len(entries) else None
            if intent is None:
                intents.append(QueryIntent.default())
            else:
                intents.append(intent)
                parsed += 1

        if len(entries) > expected:
            errors.append(f"Classifier returned {len(entries)} entries for {expected} queries")

        return IntentParseResult(
            intents=intents,
            parsed_count=parsed,
            parse_method=method,
            errors=errors,
        )

    # =========================================================================
    # DECODING
    # =========================================================================

    def _decode_direct(self, text: str) -> Any:
        """Whole body is JSON."""
        stripped = text.strip()
        if not stripped:
            raise ValueError("Empty response")
        return json.loads(stripped)

    def _decode_embedded(self, text: str) -> Any:
        """First well-formed array or object inside free text."""
        decoder = json.JSONDecoder()
        for index, char in enumerate(text):
            if char not in "[{":
                continue
            try:
                value, _ = decoder.raw_decode(text, index)
            except json.JSONDecodeError:
                continue
            if isinstance(value, (list, dict)):
                return value
        raise ValueError("No JSON array or object found")

    # =========================================================================
    # NORMALIZATION
    # =========================================================================

    def _extract_entries(self, decoded: Any) -> List[Any]:
        """Find the positional list of classifications in decoded JSON."""
        if isinstance(decoded, list):
            return decoded

        if isinstance(decoded, dict):
            for key in LIST_KEYS:
                value = decoded.get(key)
                if isinstance(value, list):
                    return value
            if "intent" in decoded or "category" in decoded:
                return [decoded]

        return []

    def _to_intent(self, entry: Any) -> Optional[QueryIntent]:
        """Convert one entry; None if it carries nothing usable."""
        if not isinstance(entry, dict):
            return None

        description, category = self._fields(entry)
        if not description and not category:
            return None

        default = QueryIntent.default()
        return QueryIntent(
            description=description or default.description,
            category=normalize_category(category),
        )

    def _fields(self, entry: Dict[str, Any]) -> Tuple[str, str]:
        description = entry.get("intent", entry.get("description"))
        category = entry.get("category")
        description = str(description).strip() if description is not None else ""
        category = str(category).strip() if category is not None else ""
        return description, category


def normalize_category(value: Optional[str]) -> str:
    """Map a category to its canonical name; anything else is "Unknown"."""
    if not value:
        return IntentCategory.UNKNOWN.value
    return _CATEGORY_LOOKUP.get(value.strip().lower(), IntentCategory.UNKNOWN.value)
