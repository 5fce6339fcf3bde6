"""
Amount token extraction.

Provides:
- tokenize: numeric tokens + currency hint from raw text
- clean_and_parse: deterministic token → float cleaner
- parse_number: lenient leading-number parser
"""

from .tokenizer import (
    clean_and_parse,
    find_currency_hint,
    find_numeric_tokens,
    parse_number,
    tokenize,
)

__all__ = [
    "clean_and_parse",
    "find_currency_hint",
    "find_numeric_tokens",
    "parse_number",
    "tokenize",
]
