"""Classification service: normalized amounts → labelled amounts.

The LLM labels each amount from document context. On any LLM failure every
normalized amount is labelled "unclassified".
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional, Sequence

from ..confidence import score_classification_confidence
from ..llm_client import ClassificationPrompt, LLMError, LLMResponseError
from ..schemas.amounts import (
    UNCLASSIFIED,
    ClassificationResult,
    ClassifiedAmount,
    IngestResult,
    NormalizationResult,
)
from .normalization import is_finite_number

if TYPE_CHECKING:
    from ..llm_client import BaseLLMProvider

logger = logging.getLogger(__name__)


def fallback_classify(amounts: Sequence[float]) -> list[ClassifiedAmount]:
    return [ClassifiedAmount(type=UNCLASSIFIED, value=value) for value in amounts]


def parse_labelled_amounts(data: Any) -> list[ClassifiedAmount]:
    """Validate an LLM payload against the [{type, value}] schema.

    Raises:
        LLMResponseError: Payload does not match the schema.
    """
    if not isinstance(data, list):
        raise LLMResponseError(f"Expected a JSON array, got {type(data).__name__}")

    amounts = []
    for item in data:
        if not isinstance(item, dict):
            raise LLMResponseError(f"Expected an object, got {item!r}")
        label = item.get("type")
        value = item.get("value")
        if not isinstance(label, str) or not label:
            raise LLMResponseError(f"Missing or invalid 'type' in {item!r}")
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise LLMResponseError(f"Missing or invalid 'value' in {item!r}")
        if not is_finite_number(value):
            raise LLMResponseError(f"Non-finite 'value' in {item!r}")
        amounts.append(ClassifiedAmount(type=label, value=float(value)))
    return amounts


class ClassificationService:
    """LLM-assisted classification with an "unclassified" fallback."""

    def __init__(
        self,
        llm: Optional[BaseLLMProvider] = None,
        prompt: Optional[ClassificationPrompt] = None,
    ) -> None:
        self.llm = llm
        self.prompt = prompt or ClassificationPrompt()

    async def classify(
        self,
        ingest: IngestResult,
        normalization: NormalizationResult,
    ) -> ClassificationResult:
        """Label the normalized amounts using the document text as context."""
        logger.info("Step 3 - classification")

        amounts: Optional[list[ClassifiedAmount]] = None
        if self.llm is None:
            logger.info("LLM not configured, using classification fallback")
        else:
            amounts = await self._classify_with_llm(ingest, normalization)

        llm_succeeded = amounts is not None
        if amounts is None:
            amounts = fallback_classify(normalization.normalized_amounts)

        confidence = score_classification_confidence(amounts, ingest.raw_text, llm_succeeded)
        return ClassificationResult(
            amounts=tuple(amounts),
            confidence=round(confidence, 2),
            llm_succeeded=llm_succeeded,
        )

    async def _classify_with_llm(
        self,
        ingest: IngestResult,
        normalization: NormalizationResult,
    ) -> Optional[list[ClassifiedAmount]]:
        user_message = self.prompt.format_user_message(
            ingest.raw_text, normalization.normalized_amounts
        )
        try:
            data = await self.llm.generate_json(
                self.prompt.system_prompt,
                user_message,
                self.prompt.response_schema,
            )
            return parse_labelled_amounts(data)
        except LLMError as e:
            logger.warning("LLM classification failed: %s, using fallback", e)
            return None
