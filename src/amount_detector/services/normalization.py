"""Normalization service: raw tokens → numeric amounts.

The LLM corrects OCR noise, treats commas as thousands separators and drops
non-financial values. On any LLM failure the deterministic cleaner takes over.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Any, Optional, Sequence

from ..confidence import score_normalization_confidence
from ..extractors.tokenizer import clean_and_parse
from ..llm_client import LLMError, LLMResponseError, NormalizationPrompt
from ..schemas.amounts import IngestResult, NormalizationResult

if TYPE_CHECKING:
    from ..llm_client import BaseLLMProvider

logger = logging.getLogger(__name__)


def is_finite_number(value: float) -> bool:
    """True unless the value is NaN, infinite, or too large for a float."""
    try:
        return math.isfinite(value)
    except OverflowError:
        # Integer literal too large for a float
        return False


def fallback_normalize(tokens: Sequence[str]) -> list[float]:
    """Clean and parse every token, dropping those that do not parse."""
    amounts = []
    for token in tokens:
        value = clean_and_parse(token)
        if value is not None:
            amounts.append(value)
    return amounts


def parse_number_array(data: Any) -> list[float]:
    """Validate an LLM payload against the array-of-numbers schema.

    Raises:
        LLMResponseError: Payload is not a list of numbers.
    """
    if not isinstance(data, list):
        raise LLMResponseError(f"Expected a JSON array, got {type(data).__name__}")

    amounts = []
    for item in data:
        if isinstance(item, bool) or not isinstance(item, (int, float)):
            raise LLMResponseError(f"Non-numeric entry in normalization output: {item!r}")
        if not is_finite_number(item):
            raise LLMResponseError(f"Non-finite entry in normalization output: {item!r}")
        amounts.append(float(item))
    return amounts


class NormalizationService:
    """LLM-assisted normalization with a deterministic fallback."""

    def __init__(
        self,
        llm: Optional[BaseLLMProvider] = None,
        prompt: Optional[NormalizationPrompt] = None,
    ) -> None:
        self.llm = llm
        self.prompt = prompt or NormalizationPrompt()

    async def normalize(self, ingest: IngestResult) -> NormalizationResult:
        """Normalize the tokens of a successful ingestion."""
        logger.info("Step 2 - normalization")

        amounts, llm_succeeded = await self._normalize_with_llm(ingest)
        if not llm_succeeded:
            amounts = fallback_normalize(ingest.raw_tokens)

        confidence = score_normalization_confidence(ingest.raw_tokens, amounts, llm_succeeded)
        return NormalizationResult(
            normalized_amounts=tuple(amounts),
            confidence=round(confidence, 2),
            llm_succeeded=llm_succeeded,
        )

    async def _normalize_with_llm(self, ingest: IngestResult) -> tuple[list[float], bool]:
        if self.llm is None:
            logger.info("LLM not configured, using normalization fallback")
            return [], False

        user_message = self.prompt.format_user_message(ingest.raw_text, ingest.raw_tokens)
        try:
            data = await self.llm.generate_json(
                self.prompt.system_prompt,
                user_message,
                self.prompt.response_schema,
            )
            return parse_number_array(data), True
        except LLMError as e:
            logger.warning("LLM normalization failed: %s, using fallback", e)
            return [], False
