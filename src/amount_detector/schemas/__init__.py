"""
Canonical schemas for the amount detection pipeline.

Every stage reads and writes these models. No stage may invent its own
intermediate shape.
"""

from .amounts import (
    SOURCE_NOT_FOUND,
    UNCLASSIFIED,
    UNKNOWN_CURRENCY,
    ClassificationResult,
    ClassifiedAmount,
    FinalAmount,
    IngestResult,
    IngestStatus,
    InputKind,
    NormalizationResult,
    RawInput,
    ReconciliationResult,
    Report,
)

__all__ = [
    "SOURCE_NOT_FOUND",
    "UNCLASSIFIED",
    "UNKNOWN_CURRENCY",
    "ClassificationResult",
    "ClassifiedAmount",
    "FinalAmount",
    "IngestResult",
    "IngestStatus",
    "InputKind",
    "NormalizationResult",
    "RawInput",
    "ReconciliationResult",
    "Report",
]
