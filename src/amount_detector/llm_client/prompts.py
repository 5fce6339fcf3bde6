"""Prompt templates for LLM-assisted normalization and classification.

Each prompt carries the strict response schema the provider must follow.
Prompts are versioned so responses can be traced to the wording that
produced them.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Sequence

# v1.0: initial normalization/classification prompts
PROMPT_VERSION = "v1.0"

# Example labels offered to the classifier
CLASSIFICATION_LABELS = ("total_bill", "paid", "due", "tax", "insurance_copay")


def _number_array_schema() -> dict:
    return {
        "type": "ARRAY",
        "items": {"type": "NUMBER"},
        "description": "A list of normalized financial amounts as numbers.",
    }


def _labelled_amount_schema() -> dict:
    return {
        "type": "ARRAY",
        "items": {
            "type": "OBJECT",
            "properties": {
                "type": {"type": "STRING", "description": "The context/label of the amount."},
                "value": {"type": "NUMBER", "description": "The numerical value."},
            },
            "propertyOrdering": ["type", "value"],
        },
    }


@dataclass
class NormalizationPrompt:
    """Prompt template for token normalization.

    Attributes:
        version: Prompt version.
        system_prompt: System instruction setting LLM behavior.
        user_template: Template for the user message.
        response_schema: Required output shape (array of numbers).
    """

    version: str = PROMPT_VERSION

    system_prompt: str = (
        "You are an expert financial data normalizer. Extract valid financial amounts "
        "from raw tokens. Correct OCR errors, treat commas as grouping separators, and "
        "output precise numerical values."
    )

    user_template: str = (
        'Original Text: "{text}". Raw Tokens: {tokens}. '
        "Please normalize the tokens, correcting errors and treating commas as grouping "
        "separators. Remove all commas to form the intended numerical values "
        "(e.g., '175,00' -> 17500). Filter out percentages, quantities, and "
        "non-financial values."
    )

    response_schema: dict = field(default_factory=_number_array_schema)

    def format_user_message(self, text: str, tokens: Sequence[str]) -> str:
        """Format the user message.

        Args:
            text: Document text.
            tokens: Raw numeric tokens in document order.

        Returns:
            Formatted user message.
        """
        return self.user_template.format(text=text, tokens=json.dumps(list(tokens)))


@dataclass
class ClassificationPrompt:
    """Prompt template for amount classification."""

    version: str = PROMPT_VERSION

    system_prompt: str = (
        "You are an expert financial document classifier. Determine the context for each "
        "amount based on surrounding text (e.g., {labels}). "
        "Output JSON array with 'type' and 'value' keys."
    ).format(labels=", ".join(f"'{label}'" for label in CLASSIFICATION_LABELS))

    user_template: str = (
        'Original Text: "{text}". Normalized Amounts: {amounts}. '
        "Classify each amount based on surrounding context (e.g., {labels})."
    )

    response_schema: dict = field(default_factory=_labelled_amount_schema)

    def format_user_message(self, text: str, amounts: Sequence[float]) -> str:
        """Format the user message with the document text and amounts."""
        return self.user_template.format(
            text=text,
            amounts=json.dumps(list(amounts)),
            labels=", ".join(f"'{label}'" for label in CLASSIFICATION_LABELS),
        )
