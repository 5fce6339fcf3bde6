"""
Request handlers for the text and image endpoints.

Each handler returns (http_status, json_payload) so any web framework can
serve them. Input errors map to 400, unexpected failures to 500 with the
exception message; everything else is a 200 with the pipeline report.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from ..schemas.amounts import RawInput
from ..services.ingestion import InputError
from ..services.pipeline import AmountDetectionPipeline

logger = logging.getLogger(__name__)

TEXT_REQUIRED = "Text field is required and must be a string"
IMAGE_REQUIRED = "Image file is required"


def _error(status_code: int, reason: str) -> tuple[int, dict]:
    return status_code, {"status": "error", "reason": reason}


def health() -> dict:
    """Liveness payload."""
    return {
        "status": "ok",
        "message": "AI Amount Detection API is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


async def _run(pipeline: AmountDetectionPipeline, raw_input: RawInput) -> tuple[int, dict]:
    try:
        report = await pipeline.run(raw_input)
    except InputError as e:
        return _error(400, str(e))
    except Exception as e:
        logger.exception("%s processing error", raw_input.kind.value.capitalize())
        return _error(500, f"Processing failed: {e}")
    return 200, report.to_dict()


async def handle_text_request(pipeline: AmountDetectionPipeline, body: Any) -> tuple[int, dict]:
    """Handle a text request body of the form {"text": "..."}."""
    text = body.get("text") if isinstance(body, dict) else None
    if not text or not isinstance(text, str):
        return _error(400, TEXT_REQUIRED)
    return await _run(pipeline, RawInput.text(text))


async def handle_image_request(
    pipeline: AmountDetectionPipeline,
    content: Optional[bytes],
) -> tuple[int, dict]:
    """Handle an uploaded image."""
    if not content:
        return _error(400, IMAGE_REQUIRED)

    limit = pipeline.config.ocr.max_image_bytes
    if len(content) > limit:
        return _error(400, f"Image file is too large (limit: {limit} bytes)")

    return await _run(pipeline, RawInput.image(content))
