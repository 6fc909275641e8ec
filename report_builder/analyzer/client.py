"""
Claude client used for batched intent classification.

One request per call and no retries: a failed call is reported back as an
unsuccessful CompletionResponse so the annotator can fall back to default
intents instead of failing the report.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import anthropic

from ..utils import get_settings

logger = logging.getLogger(__name__)

# USD per million tokens (Sonnet 4)
INPUT_PRICE_PER_MTOK = 3.0
OUTPUT_PRICE_PER_MTOK = 15.0


@dataclass
class TokenUsage:
    """Tokens consumed by one or more calls."""
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    @property
    def estimated_cost(self) -> float:
        return (
            self.input_tokens * INPUT_PRICE_PER_MTOK
            + self.output_tokens * OUTPUT_PRICE_PER_MTOK
        ) / 1_000_000

    def add(self, other: "TokenUsage") -> None:
        self.input_tokens += other.input_tokens
        self.output_tokens += other.output_tokens


@dataclass
class CompletionResponse:
    """Text reply from Claude, or the reason there is none."""
    content: str
    usage: TokenUsage
    model: str
    stop_reason: Optional[str]
    success: bool = True
    error: Optional[str] = None

    @classmethod
    def failed(cls, model: str, error: str) -> "CompletionResponse":
        return cls(content="", usage=TokenUsage(), model=model, stop_reason="error", success=False, error=error)


class ClaudeClient:
    """
    Async Claude client with per-instance usage totals.

    Key and model come from settings unless passed explicitly.
    """

    MAX_TOKENS = 8000
    TEMPERATURE = 0.3

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        settings = get_settings()
        self.api_key = api_key or settings.ANTHROPIC_API_KEY
        if not self.api_key:
            raise ValueError("ANTHROPIC_API_KEY not provided")

        self.model = model or settings.CLAUDE_MODEL
        self._client = anthropic.AsyncAnthropic(api_key=self.api_key)

        self.usage = TokenUsage()
        self.call_count = 0

    async def complete(
        self,
        prompt: str,
        system: Optional[str] = None,
        max_tokens: int = MAX_TOKENS,
        temperature: float = TEMPERATURE,
    ) -> CompletionResponse:
        """
        Send a single user message.

        Returns:
            CompletionResponse; success is False on any API or connection error
        """
        request: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            request["system"] = system

        try:
            message = await self._client.messages.create(**request)
        except anthropic.APIStatusError as e:
            logger.error(f"Claude returned {e.status_code}: {e.message}")
            return CompletionResponse.failed(self.model, f"{e.status_code}: {e.message}")
        except anthropic.APIError as e:
            logger.error(f"Claude request failed: {e}")
            return CompletionResponse.failed(self.model, str(e))

        text = "".join(block.text for block in message.content if getattr(block, "type", None) == "text")
        usage = TokenUsage(
            input_tokens=message.usage.input_tokens,
            output_tokens=message.usage.output_tokens,
        )
        self.usage.add(usage)
        self.call_count += 1

        logger.info(
            f"Claude call: {usage.input_tokens} in, {usage.output_tokens} out, "
            f"${usage.estimated_cost:.4f} (stop: {message.stop_reason})"
        )
        if message.stop_reason == "max_tokens":
            logger.warning("Claude reply hit max_tokens; trailing classifications will be missing")

        return CompletionResponse(
            content=text,
            usage=usage,
            model=self.model,
            stop_reason=message.stop_reason,
        )

    def get_usage_summary(self) -> Dict[str, Any]:
        return {
            "total_calls": self.call_count,
            "input_tokens": self.usage.input_tokens,
            "output_tokens": self.usage.output_tokens,
            "total_tokens": self.usage.total_tokens,
            "estimated_cost": self.usage.estimated_cost,
        }
