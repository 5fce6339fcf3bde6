"""
Pipeline stages.

Provides:
- IngestionService: text/OCR ingestion with confidence scoring
- NormalizationService: LLM normalization with deterministic fallback
- ClassificationService: LLM classification with "unclassified" fallback
- reconcile: link final amounts back to source text
- AmountDetectionPipeline: sequences the stages into a Report
"""

from .classification import ClassificationService, fallback_classify
from .ingestion import IngestionService, InputError
from .normalization import NormalizationService, fallback_normalize
from .pipeline import AmountDetectionPipeline
from .reconciliation import find_line_source, find_structured_source, reconcile

__all__ = [
    "AmountDetectionPipeline",
    "ClassificationService",
    "IngestionService",
    "InputError",
    "NormalizationService",
    "fallback_classify",
    "fallback_normalize",
    "find_line_source",
    "find_structured_source",
    "reconcile",
]
