"""Source reconciliation: link each classified amount to the text it came from.

Two strategies, tried in order:

1. Structured-delimiter search (text input only): split the document on
   pipes, commas before a word, semicolons, then newlines, and return the
   first segment holding a matching number.
2. Line search: scan non-empty lines, longest first, for a matching number
   whose (line, offset) span has not been attributed yet.

The used-span set is created per reconciliation pass and passed explicitly,
so one span is never credited to two amounts and concurrent requests share
nothing.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from ..extractors.tokenizer import parse_number
from ..schemas.amounts import (
    UNKNOWN_CURRENCY,
    ClassificationResult,
    FinalAmount,
    IngestResult,
    ReconciliationResult,
)

logger = logging.getLogger(__name__)

# (line index, character offset) of an attributed number
UsedSources = set[tuple[int, int]]

MATCH_TOLERANCE = 0.01

# Tried in order; a split only counts when it yields more than one segment
STRUCTURED_DELIMITERS = (
    re.compile(r"\s*\|\s*"),
    re.compile(r"\s*,\s*(?=[A-Za-z])"),
    re.compile(r"\s*;\s*"),
    re.compile(r"\n"),
)

SEGMENT_NUMBER = re.compile(r"\d+(?:[.,]\d+)?")
LINE_NUMBER = re.compile(r"[\d,.]+")


def _matches(candidate: str, value: float, tolerance: float) -> bool:
    number = parse_number(candidate.replace(",", ""))
    return number is not None and abs(number - value) < tolerance


def find_structured_source(
    value: float,
    raw_text: str,
    tolerance: float = MATCH_TOLERANCE,
) -> Optional[str]:
    """Return the first delimiter-separated segment containing the value."""
    for delimiter in STRUCTURED_DELIMITERS:
        segments = [s.strip() for s in delimiter.split(raw_text)]
        segments = [s for s in segments if s]
        if len(segments) <= 1:
            continue

        for segment in segments:
            for match in SEGMENT_NUMBER.finditer(segment):
                if _matches(match.group(0), value, tolerance):
                    return segment

    return None


def find_line_source(
    value: float,
    raw_text: str,
    used: UsedSources,
    tolerance: float = MATCH_TOLERANCE,
) -> Optional[str]:
    """
    Return the longest unused line containing the value, whitespace-collapsed.

    Longer lines carry more context than fragments, so they are tried first.
    The matched (line, offset) span is added to used.
    """
    lines = [
        (index, line.strip())
        for index, line in enumerate(raw_text.split("\n"))
        if line.strip()
    ]
    lines.sort(key=lambda item: len(item[1]), reverse=True)

    for index, text in lines:
        for match in LINE_NUMBER.finditer(text):
            key = (index, match.start())
            if key in used:
                continue
            if _matches(match.group(0), value, tolerance):
                used.add(key)
                return re.sub(r"\s+", " ", text)

    return None


def reconcile(
    ingest: IngestResult,
    classification: ClassificationResult,
    tolerance: float = MATCH_TOLERANCE,
) -> ReconciliationResult:
    """
    Link every classified amount to a source excerpt.

    The structured strategy only runs for text input (no OCR detections),
    even when OCR text happens to look delimited.
    """
    logger.info("Step 4 - source reconciliation")

    used: UsedSources = set()
    structured = ingest.detections is None
    final_amounts = []

    for item in classification.amounts:
        source = None
        if structured:
            source = find_structured_source(item.value, ingest.raw_text, tolerance)
        if source is None:
            source = find_line_source(item.value, ingest.raw_text, used, tolerance)

        if source is None:
            logger.debug("No source span for %s=%s", item.type, item.value)

        final_amounts.append(FinalAmount(type=item.type, value=item.value, source=source))

    return ReconciliationResult(
        currency=ingest.currency_hint or UNKNOWN_CURRENCY,
        amounts=tuple(final_amounts),
    )
