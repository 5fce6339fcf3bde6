"""
Confidence scoring implementation.

Every stage reports a heuristic confidence built from structural and
lexical signals. Scores are not calibrated probabilities; they exist to
rank and flag results. Each scorer clamps to its own range and has a
fixed short-circuit value for degenerate input.
"""

import math
import re
from typing import Optional, Sequence

from ..extractors.tokenizer import parse_number

# Keywords that mark a text as a bill/receipt (ingestion scoring)
DOCUMENT_KEYWORDS = (
    "total",
    "amount",
    "bill",
    "receipt",
    "invoice",
    "paid",
    "due",
    "tax",
    "subtotal",
    "discount",
    "fee",
    "charge",
    "balance",
    "prescription",
    "consultation",
    "treatment",
)

# Keywords that give classification its context (medical billing)
CONTEXT_KEYWORDS = (
    "bill",
    "total",
    "amount",
    "paid",
    "due",
    "tax",
    "fee",
    "charge",
    "prescription",
    "consultation",
    "treatment",
    "hospital",
    "clinic",
    "medical",
    "doctor",
    "patient",
    "invoice",
)

# Label fragments that indicate a recognised financial category
COMMON_LABELS = ("total", "paid", "due", "tax", "fee", "copay")

# Labels that mean "the classifier did not decide"
UNDECIDED_LABELS = ("unclassified", "unknown")

# 1,234.56 / 1,234 / 1234 / 1234.5
VALID_AMOUNT_FORMAT = re.compile(r"\d{1,3}(?:,\d{3})*(?:\.\d{2})?|\d+(?:\.\d{1,2})?")

# Characters outside letters, digits, whitespace and common punctuation
NOISE_CHARS = re.compile(r"[^a-zA-Z0-9\s.,\-:()]")

# Plausible range for a single bill amount
REASONABLE_MIN = 0.01
REASONABLE_MAX = 100_000

# Upper bound for a sane normalized value
NORMALIZED_MAX = 1_000_000


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _non_empty_lines(text: str) -> list[str]:
    return [line for line in text.split("\n") if line.strip()]


def _words_per_line(word_count: int, line_count: int) -> float:
    return word_count / max(line_count, 1)


def _valid_format_ratio(tokens: Sequence[str]) -> float:
    """Fraction of tokens written in a well-formed money format."""
    valid = [
        token
        for token in tokens
        if VALID_AMOUNT_FORMAT.fullmatch(re.sub(r"[^\d.,]", "", token))
    ]
    return len(valid) / len(tokens)


def _has_reasonable_amount(tokens: Sequence[str]) -> bool:
    for token in tokens:
        number = parse_number(re.sub(r"[^\d.]", "", token))
        if number is not None and REASONABLE_MIN <= number <= REASONABLE_MAX:
            return True
    return False


def score_text_confidence(text: Optional[str], tokens: Optional[Sequence[str]]) -> float:
    """
    Confidence for plain text ingestion.

    Returns 0.1 for empty text and 0.15 when no tokens were found,
    otherwise a score in [0.2, 0.95].
    """
    if not text or not text.strip():
        return 0.1
    if not tokens:
        return 0.15

    confidence = 0.4

    lines = _non_empty_lines(text)
    words = text.split()
    avg_words = _words_per_line(len(words), len(lines))

    if 2 <= avg_words <= 15:
        confidence += 0.15
    elif avg_words < 1:
        confidence -= 0.1

    # Tokens present
    confidence += 0.2

    confidence += _valid_format_ratio(tokens) * 0.2

    if _has_reasonable_amount(tokens):
        confidence += 0.1

    lowered = text.lower()
    keyword_hits = sum(1 for keyword in DOCUMENT_KEYWORDS if keyword in lowered)
    if keyword_hits >= 2:
        confidence += 0.15
    elif keyword_hits == 1:
        confidence += 0.05

    total_chars = len(text)
    if total_chars < 20:
        confidence -= 0.2
    elif 50 <= total_chars <= 2000:
        confidence += 0.1

    lines_with_digits = sum(1 for line in lines if re.search(r"\d", line))
    if lines_with_digits / max(len(lines), 1) >= 0.3:
        confidence += 0.1

    noise_ratio = len(NOISE_CHARS.findall(text)) / max(total_chars, 1)
    if noise_ratio > 0.3:
        confidence -= 0.1

    return _clamp(confidence, 0.2, 0.95)


def score_ocr_confidence(detections: Optional[Sequence], tokens: Optional[Sequence[str]]) -> float:
    """
    Confidence for OCR ingestion.

    detections[0] is the full-image annotation, the rest are words.
    Returns 0.1 when there is no real text, otherwise a score in [0.05, 0.98].
    """
    if not detections or len(detections) <= 1:
        return 0.1

    full_text = detections[0].description or ""
    word_count = len(detections) - 1

    confidence = 0.3

    lines = _non_empty_lines(full_text)
    avg_words = _words_per_line(word_count, len(lines))

    if 2 <= avg_words <= 15:
        confidence += 0.15
    elif avg_words < 1:
        confidence -= 0.2

    if tokens:
        confidence += 0.2
        confidence += _valid_format_ratio(tokens) * 0.2
        if _has_reasonable_amount(tokens):
            confidence += 0.1
    else:
        confidence -= 0.3

    return _clamp(confidence, 0.05, 0.98)


def score_normalization_confidence(
    raw_tokens: Optional[Sequence[str]],
    normalized_amounts: Optional[Sequence[float]],
    llm_succeeded: bool,
) -> float:
    """
    Confidence for the normalization stage.

    Returns 0.1 if either collection is missing, otherwise [0.1, 0.95].
    """
    if raw_tokens is None or normalized_amounts is None:
        return 0.1

    confidence = 0.3

    if llm_succeeded:
        confidence += 0.4

    # How many tokens survived normalization
    token_ratio = len(normalized_amounts) / len(raw_tokens) if raw_tokens else 0.0
    if 0.5 <= token_ratio <= 1.0:
        confidence += 0.2
    elif token_ratio < 0.2:
        confidence -= 0.2

    if normalized_amounts:
        valid = [
            value
            for value in normalized_amounts
            if math.isfinite(value) and 0 < value < NORMALIZED_MAX
        ]
        confidence += len(valid) / len(normalized_amounts) * 0.2

        # More than 20% duplicates
        if len(set(normalized_amounts)) < len(normalized_amounts) * 0.8:
            confidence -= 0.1

    return _clamp(confidence, 0.1, 0.95)


def score_classification_confidence(
    amounts: Optional[Sequence],
    raw_text: str,
    llm_succeeded: bool,
) -> float:
    """
    Confidence for the classification stage.

    Args:
        amounts: ClassifiedAmount items
        raw_text: Document text used as classification context
        llm_succeeded: Whether labels came from the LLM

    Returns:
        0.1 when there are no amounts, otherwise a score in [0.1, 0.95]
    """
    if not amounts:
        return 0.1

    confidence = 0.2

    if llm_succeeded:
        confidence += 0.3

    lowered = (raw_text or "").lower()
    keyword_hits = sum(1 for keyword in CONTEXT_KEYWORDS if keyword in lowered)
    confidence += min(0.3, keyword_hits * 0.05)

    labels = [amount.type for amount in amounts]
    distinct = set(labels)

    # Several labels, but not one label per amount
    if len(distinct) > 1 and len(distinct) <= len(amounts) * 0.8:
        confidence += 0.15

    undecided = sum(1 for label in labels if label in UNDECIDED_LABELS)
    confidence -= undecided / len(amounts) * 0.2

    if any(common in label.lower() for label in labels for common in COMMON_LABELS):
        confidence += 0.1

    return _clamp(confidence, 0.1, 0.95)
