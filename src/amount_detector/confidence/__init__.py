"""
Confidence scoring module.

Computes heuristic confidence for each pipeline stage.
"""

from .scorer import (
    score_classification_confidence,
    score_normalization_confidence,
    score_ocr_confidence,
    score_text_confidence,
)

__all__ = [
    "score_classification_confidence",
    "score_normalization_confidence",
    "score_ocr_confidence",
    "score_text_confidence",
]
