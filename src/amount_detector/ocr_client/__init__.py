"""
OCR client.

Provides:
- BaseOCRProvider: text detection capability (inject fakes in tests)
- VisionOCRClient: Google Cloud Vision REST implementation
- detect_text: async adapter turning provider output/failures into OCRFailure
- group_words_into_lines: word annotations → lines in reading order
"""

from .client import (
    BaseOCRProvider,
    OCRError,
    OCRFailure,
    TextAnnotation,
    VisionOCRClient,
    detect_text,
)
from .lines import TextLine, group_words_into_lines, lines_to_text

__all__ = [
    "BaseOCRProvider",
    "OCRError",
    "OCRFailure",
    "TextAnnotation",
    "TextLine",
    "VisionOCRClient",
    "detect_text",
    "group_words_into_lines",
    "lines_to_text",
]
