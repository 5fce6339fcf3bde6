"""
LLM client.

Provides:
- call_with_backoff: HTTP call with exponential backoff retry
- BaseLLMProvider: structured-output capability (inject fakes in tests)
- GeminiClient: Google Gemini REST implementation
- Prompt templates with strict response schemas
"""

from .backoff import call_with_backoff
from .client import BaseLLMProvider, GeminiClient
from .exceptions import LLMError, LLMResponseError, RPCCallError
from .prompts import PROMPT_VERSION, ClassificationPrompt, NormalizationPrompt

__all__ = [
    "PROMPT_VERSION",
    "BaseLLMProvider",
    "ClassificationPrompt",
    "GeminiClient",
    "LLMError",
    "LLMResponseError",
    "NormalizationPrompt",
    "RPCCallError",
    "call_with_backoff",
]
