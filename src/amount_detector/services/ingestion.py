"""Ingestion service: text or image → raw text, tokens, currency hint.

Empty input, images without text, and text without numbers end the
request early with NO_AMOUNTS_FOUND. An OCR provider failure ends it with
ERROR. Neither raises; only malformed input (InputError) does.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, Sequence

from ..confidence import score_ocr_confidence, score_text_confidence
from ..extractors.tokenizer import tokenize
from ..ocr_client import OCRFailure, detect_text, group_words_into_lines, lines_to_text
from ..ocr_client.lines import LINE_TOLERANCE
from ..schemas.amounts import IngestResult, IngestStatus, InputKind, RawInput

if TYPE_CHECKING:
    from ..ocr_client import BaseOCRProvider, TextAnnotation

logger = logging.getLogger(__name__)

EMPTY_TEXT_REASON = "Empty text provided"
NO_NUMBERS_REASON = "document contains text but no numbers"
OCR_UNAVAILABLE_REASON = "OCR provider is not configured"


class InputError(ValueError):
    """The request payload is missing or has the wrong type."""

    pass


class IngestionService:
    """Turns a RawInput into an IngestResult."""

    def __init__(
        self,
        ocr_provider: Optional[BaseOCRProvider] = None,
        line_tolerance: int = LINE_TOLERANCE,
    ) -> None:
        self.ocr_provider = ocr_provider
        self.line_tolerance = line_tolerance

    async def ingest(self, raw_input: RawInput) -> IngestResult:
        """Dispatch on input kind.

        Raises:
            InputError: Content does not match the declared kind.
        """
        if raw_input.kind == InputKind.TEXT:
            if not isinstance(raw_input.content, str):
                raise InputError("Text field is required and must be a string")
            return self.ingest_text(raw_input.content)

        if raw_input.kind == InputKind.IMAGE:
            if not isinstance(raw_input.content, (bytes, bytearray)) or not raw_input.content:
                raise InputError("Image file is required")
            return await self.ingest_image(bytes(raw_input.content))

        raise InputError(f"Unsupported input kind: {raw_input.kind!r}")

    def ingest_text(self, text: str) -> IngestResult:
        """Ingest plain text."""
        logger.info("Step 1 - text ingestion")
        raw_text = text.strip()
        if not raw_text:
            return IngestResult.failed(IngestStatus.NO_AMOUNTS_FOUND, EMPTY_TEXT_REASON)

        logger.debug("Input text:\n%s", raw_text)
        return self._build_result(raw_text, detections=None)

    async def ingest_image(self, image: bytes) -> IngestResult:
        """Ingest an image through the OCR provider."""
        logger.info("Step 1 - image ingestion (%d bytes)", len(image))
        if self.ocr_provider is None:
            return IngestResult.failed(IngestStatus.ERROR, OCR_UNAVAILABLE_REASON)

        try:
            detections = await detect_text(self.ocr_provider, image)
        except OCRFailure as e:
            logger.warning("OCR ended the request: %s", e.reason)
            return IngestResult.failed(e.status, e.reason)

        lines = group_words_into_lines(detections[1:], tolerance=self.line_tolerance)
        raw_text = lines_to_text(lines)
        logger.debug("OCR text (%d lines):\n%s", len(lines), raw_text)
        return self._build_result(raw_text, detections=detections)

    def _build_result(
        self,
        raw_text: str,
        detections: Optional[Sequence[TextAnnotation]],
    ) -> IngestResult:
        tokens, currency_hint = tokenize(raw_text)
        if not tokens:
            return IngestResult.failed(IngestStatus.NO_AMOUNTS_FOUND, NO_NUMBERS_REASON)

        if detections is not None:
            confidence = score_ocr_confidence(detections, tokens)
        else:
            confidence = score_text_confidence(raw_text, tokens)

        logger.info("Found %d tokens (currency hint: %s)", len(tokens), currency_hint)
        return IngestResult(
            status=IngestStatus.OK,
            raw_text=raw_text,
            raw_tokens=tuple(tokens),
            currency_hint=currency_hint,
            confidence=round(confidence, 2),
            detections=tuple(detections) if detections is not None else None,
        )
