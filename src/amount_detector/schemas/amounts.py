"""
Canonical amount detection models (SSOT).

Each request flows through these objects in order:

    RawInput → IngestResult → NormalizationResult → ClassificationResult
             → ReconciliationResult → Report

All models are immutable once created. Per-request mutable state (the set of
already attributed source spans) lives in the reconciliation service, never here.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

# Label assigned to every amount when the LLM classification is unavailable
UNCLASSIFIED = "unclassified"

# Currency reported when the document carries no currency marker
UNKNOWN_CURRENCY = "UNKNOWN"

# Rendered in place of a source excerpt when no span matched
SOURCE_NOT_FOUND = "source text not found"


class InputKind(str, Enum):
    """Modality of a request payload."""

    TEXT = "text"
    IMAGE = "image"


class IngestStatus(str, Enum):
    """
    Outcome of the ingestion stage.

    OK: tokens found, downstream stages run
    NO_AMOUNTS_FOUND: empty input, no text detected, or no numbers in the text
    ERROR: the OCR provider failed
    """

    OK = "ok"
    NO_AMOUNTS_FOUND = "no_amounts_found"
    ERROR = "error"


@dataclass(frozen=True)
class RawInput:
    """A single request payload: plain text or raw image bytes."""

    kind: InputKind
    content: Any  # str for TEXT, bytes for IMAGE

    @classmethod
    def text(cls, content: str) -> "RawInput":
        return cls(kind=InputKind.TEXT, content=content)

    @classmethod
    def image(cls, content: bytes) -> "RawInput":
        return cls(kind=InputKind.IMAGE, content=content)


@dataclass(frozen=True)
class IngestResult:
    """
    Output of text/OCR ingestion.

    raw_tokens is never empty when status is OK. detections holds the OCR
    annotations for image input and stays None for text input; reconciliation
    uses that difference to pick its matching strategy.
    """

    status: IngestStatus
    raw_text: str = ""
    raw_tokens: tuple[str, ...] = ()
    currency_hint: Optional[str] = None
    confidence: float = 0.0
    reason: Optional[str] = None
    detections: Optional[tuple[Any, ...]] = None

    @property
    def ok(self) -> bool:
        return self.status == IngestStatus.OK

    @classmethod
    def failed(cls, status: IngestStatus, reason: str) -> "IngestResult":
        """Build an early-termination result."""
        return cls(status=status, reason=reason)


@dataclass(frozen=True)
class NormalizationResult:
    """Numeric values produced from the raw tokens."""

    normalized_amounts: tuple[float, ...]
    confidence: float
    llm_succeeded: bool = False


@dataclass(frozen=True)
class ClassifiedAmount:
    """A normalized amount with its semantic label (e.g. "total_bill", "tax")."""

    type: str
    value: float

    def to_dict(self) -> dict:
        return {"type": self.type, "value": self.value}


@dataclass(frozen=True)
class ClassificationResult:
    """
    Labelled amounts.

    Order follows normalized_amounts, but the LLM may drop or merge entries,
    so the length is not guaranteed to match.
    """

    amounts: tuple[ClassifiedAmount, ...]
    confidence: float
    llm_succeeded: bool = False


@dataclass(frozen=True)
class FinalAmount:
    """A classified amount linked back to the text it came from."""

    type: str
    value: float
    source: Optional[str] = None  # Excerpt of raw_text, None when no span matched

    @property
    def source_found(self) -> bool:
        return self.source is not None

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "value": self.value,
            "source": f"text: '{self.source}'" if self.source is not None else SOURCE_NOT_FOUND,
        }


@dataclass(frozen=True)
class ReconciliationResult:
    """Final amounts for one document."""

    currency: str
    amounts: tuple[FinalAmount, ...]
    status: IngestStatus = IngestStatus.OK

    def to_dict(self) -> dict:
        return {
            "currency": self.currency,
            "amounts": [a.to_dict() for a in self.amounts],
            "status": self.status.value,
        }


@dataclass(frozen=True)
class Report:
    """
    Combined result of one pipeline run.

    When ingestion did not succeed only status and reason are set and the
    serialized form carries nothing else.
    """

    ingest: IngestResult
    normalization: Optional[NormalizationResult] = None
    classification: Optional[ClassificationResult] = None
    reconciliation: Optional[ReconciliationResult] = None

    @property
    def status(self) -> IngestStatus:
        return self.ingest.status

    @property
    def reason(self) -> Optional[str]:
        return self.ingest.reason

    @property
    def complete(self) -> bool:
        return self.ingest.ok and self.reconciliation is not None

    def to_dict(self) -> dict:
        """Convert to the JSON shape returned by the text and image endpoints."""
        if not self.complete:
            return {"status": self.status.value, "reason": self.reason}

        return {
            "step1": {
                "raw_tokens": list(self.ingest.raw_tokens),
                "currency_hint": self.ingest.currency_hint,
                "confidence": self.ingest.confidence,
            },
            "step2": {
                "normalized_amounts": list(self.normalization.normalized_amounts),
                "normalization_confidence": self.normalization.confidence,
            },
            "step3": {
                "amounts": [a.to_dict() for a in self.classification.amounts],
                "confidence": self.classification.confidence,
            },
            "step4": self.reconciliation.to_dict(),
        }
