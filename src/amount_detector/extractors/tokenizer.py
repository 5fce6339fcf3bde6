"""
Numeric token extraction from bill/receipt text.

Finds candidate money amounts and a currency marker using pattern matching.
Tokens are kept verbatim (no normalization): correcting OCR noise and
resolving separators is the job of the normalization stage.

Supported forms:
- Grouped thousands: 1,250.00  12,345  1.234,56
- Plain decimals: 550  125.00  17,5
- Currency: INR, USD, EUR, GBP, Rs, Rs., $, €, ₹, £, ¥
"""

import re
from typing import Optional

# Currency marker (first appearance wins). "Rs." keeps its trailing dot.
CURRENCY_PATTERN = re.compile(
    r"\b(?:INR|USD|EUR|GBP)\b|\bRs\b\.?|[$€₹£¥]",
    re.IGNORECASE,
)

# Numeric token, optionally preceded by a currency marker.
# The grouped form must not be followed by another digit, so "1250.00"
# falls through to the plain form instead of splitting into "125" + "0.00".
TOKEN_PATTERN = re.compile(
    r"(?:[$€₹£¥]|INR|Rs\.?)?\s*"
    r"(\d{1,3}(?:[.,]\d{3})*(?:[.,]\d{2})?(?!\d)|\d+(?:[.,]\d+)?)"
)

# Leading numeric prefix, the way a lenient float parser reads it
_LEADING_NUMBER = re.compile(r"\d+(?:\.\d*)?|\.\d+")


def find_currency_hint(text: str) -> Optional[str]:
    """Return the first currency marker in the text, as written."""
    match = CURRENCY_PATTERN.search(text)
    return match.group(0) if match else None


def find_numeric_tokens(text: str) -> list[str]:
    """Return numeric substrings in order of appearance."""
    return [match.group(1).strip() for match in TOKEN_PATTERN.finditer(text)]


def tokenize(text: str) -> tuple[list[str], Optional[str]]:
    """
    Extract numeric tokens and a currency hint from raw text.

    Args:
        text: Raw document text

    Returns:
        Tuple of (tokens, currency_hint)
    """
    return find_numeric_tokens(text), find_currency_hint(text)


def parse_number(value: str) -> Optional[float]:
    """
    Parse the leading number of a string, ignoring trailing garbage.

    "12.50" -> 12.5, "1.2.3" -> 1.2, "5." -> 5.0, "." -> None, "" -> None.
    Callers strip separators and symbols first.
    """
    match = _LEADING_NUMBER.match(value.strip())
    if not match:
        return None
    return float(match.group(0))


def clean_and_parse(token: str) -> Optional[float]:
    """
    Deterministic token cleaner.

    Strips whitespace, drops comma separators and every character that is
    not a digit or a dot, then parses what is left.
    """
    cleaned = token.strip().replace(",", "")
    cleaned = re.sub(r"[^0-9.]", "", cleaned)
    return parse_number(cleaned)
