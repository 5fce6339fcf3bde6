"""
Reading-order reconstruction for OCR word annotations.
"""

from dataclasses import dataclass
from functools import cmp_to_key
from typing import Sequence

from .client import TextAnnotation

# Vertical distance (position units) within which words share a line
LINE_TOLERANCE = 10


@dataclass(frozen=True)
class TextLine:
    """One reconstructed line of text."""

    text: str


def _reading_order(tolerance: int):
    def compare(a: TextAnnotation, b: TextAnnotation) -> int:
        # Same band: left to right, otherwise top to bottom
        if abs(a.y - b.y) < tolerance:
            return a.x - b.x
        return a.y - b.y

    return cmp_to_key(compare)


def group_words_into_lines(
    words: Sequence[TextAnnotation],
    tolerance: int = LINE_TOLERANCE,
) -> list[TextLine]:
    """
    Group word annotations into lines in reading order.

    Words are sorted top-to-bottom (words within the tolerance band count as
    the same row and are ordered left-to-right), then scanned once: a word
    joins the current line while its vertical position stays within the
    tolerance of the line's first word, otherwise it starts a new line.

    Args:
        words: Word-level annotations (without the full-image entry)
        tolerance: Vertical tolerance in position units

    Returns:
        Lines whose text is the space-joined word descriptions
    """
    if not words:
        return []

    ordered = sorted(words, key=_reading_order(tolerance))

    lines: list[TextLine] = []
    current: list[str] = []
    anchor_y = ordered[0].y

    for word in ordered:
        if not word.description:
            continue
        if abs(word.y - anchor_y) > tolerance:
            if current:
                lines.append(TextLine(text=" ".join(current)))
            current = [word.description]
            anchor_y = word.y
        else:
            current.append(word.description)

    if current:
        lines.append(TextLine(text=" ".join(current)))

    return lines


def lines_to_text(lines: Sequence[TextLine]) -> str:
    """Join reconstructed lines into newline-separated document text."""
    return "\n".join(line.text for line in lines)
