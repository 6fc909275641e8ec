"""
Intent Annotator

Classifies the search intent of every distinct query in a reconciled table
with a single batched request, then writes the results back onto the rows
by query text.

Classification never fails a report. A transport failure, an unparseable
reply or a short reply degrades the affected queries to the default intent
("Unable to determine intent" / "Unknown") and is logged. There is no retry.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence

from .client import ClaudeClient
from ..models import QueryIntent, ReconciledRow
from ..output import IntentResponseParser

logger = logging.getLogger(__name__)


INTENT_SYSTEM_PROMPT = """You classify the search intent of Google search queries.
Respond with JSON only: an array with exactly one object per query, in the same order as the input.
Each object has two fields:
- "intent": a concise description of what the user is trying to find or do
- "category": one of "Informational", "Navigational", "Transactional", "Commercial Investigation"
"""


def build_intent_prompt(queries: Sequence[str]) -> str:
    """User prompt carrying the ordered query list."""
    return (
        f"Classify the search intent of these {len(queries)} queries.\n"
        f"Queries (JSON array, keep this order):\n"
        f"{json.dumps(list(queries), ensure_ascii=False)}"
    )


class IntentClassificationError(Exception):
    """The batched classification call itself failed."""


class IntentClassifier(ABC):
    """Batched text classification contract."""

    @abstractmethod
    async def classify(self, queries: List[str]) -> str:
        """
        Classify queries in one call.

        Returns:
            Raw response text, expected to contain a JSON array

        Raises:
            IntentClassificationError: the call did not complete
        """


class ClaudeIntentClassifier(IntentClassifier):
    """Intent classification backed by Claude."""

    TEMPERATURE = 0.4

    def __init__(self, client: ClaudeClient, max_tokens: int = ClaudeClient.MAX_TOKENS):
        self.client = client
        self.max_tokens = max_tokens

    async def classify(self, queries: List[str]) -> str:
        response = await self.client.complete(
            build_intent_prompt(queries),
            system=INTENT_SYSTEM_PROMPT,
            max_tokens=self.max_tokens,
            temperature=self.TEMPERATURE,
        )
        if not response.success:
            raise IntentClassificationError(response.error or "Classification call failed")
        return response.content


@dataclass
class AnnotationResult:
    """Annotated rows plus a description of how classification went."""
    rows: List[ReconciledRow]
    query_count: int
    classified_count: int
    parse_method: str  # "json", "embedded", "none", "transport_error", "skipped"

    @property
    def defaulted_count(self) -> int:
        return self.query_count - self.classified_count

    @property
    def degraded(self) -> bool:
        return self.defaulted_count > 0


def distinct_queries(rows: Sequence[ReconciledRow]) -> List[str]:
    """Distinct query texts in row order."""
    return list(dict.fromkeys(row.query for row in rows))


class IntentAnnotator:
    """
    Attaches QueryIntent to reconciled rows.

    Usage:
        annotator = IntentAnnotator(ClaudeIntentClassifier(ClaudeClient()))
        result = await annotator.annotate(rows)
        if result.degraded:
            ...  # some rows carry the default intent
    """

    def __init__(
        self,
        classifier: Optional[IntentClassifier],
        parser: Optional[IntentResponseParser] = None,
    ):
        self.classifier = classifier
        self.parser = parser or IntentResponseParser()

    async def annotate(self, rows: Sequence[ReconciledRow]) -> AnnotationResult:
        queries = distinct_queries(rows)

        if not queries:
            return AnnotationResult(rows=list(rows), query_count=0, classified_count=0, parse_method="skipped")

        if self.classifier is None:
            logger.warning(f"No intent classifier configured; {len(queries)} queries get the default intent")
            return self._apply(rows, queries, [QueryIntent.default()] * len(queries), 0, "skipped")

        try:
            raw = await self.classifier.classify(queries)
        except IntentClassificationError as e:
            logger.warning(f"Intent classification degraded: batch call failed ({e}); "
                           f"{len(queries)} queries get the default intent")
            return self._apply(rows, queries, [QueryIntent.default()] * len(queries), 0, "transport_error")

        parsed = self.parser.parse(raw, expected=len(queries))
        if parsed.degraded:
            logger.warning(
                f"Intent classification degraded: {parsed.defaulted_count}/{len(queries)} queries "
                f"defaulted (parse method: {parsed.parse_method}; {'; '.join(parsed.errors) or 'short reply'})"
            )
        else:
            logger.info(f"Classified {len(queries)} queries (parse method: {parsed.parse_method})")

        return self._apply(rows, queries, parsed.intents, parsed.parsed_count, parsed.parse_method)

    def _apply(
        self,
        rows: Sequence[ReconciledRow],
        queries: List[str],
        intents: List[QueryIntent],
        classified: int,
        method: str,
    ) -> AnnotationResult:
        # Positional: intents[i] belongs to queries[i]
        by_query = dict(zip(queries, intents))
        annotated = [replace(row, intent=by_query.get(row.query, QueryIntent.default())) for row in rows]
        return AnnotationResult(
            rows=annotated,
            query_count=len(queries),
            classified_count=classified,
            parse_method=method,
        )
