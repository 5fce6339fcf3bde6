"""
LLM client exceptions.

Both LLM stages catch LLMError and fall back to deterministic output, so
none of these ever reach a report.
"""

from typing import Optional


class LLMError(Exception):
    """Base exception for LLM client errors."""
    pass


class RPCCallError(LLMError):
    """The HTTP call failed after exhausting its attempts."""
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class LLMResponseError(LLMError):
    """The LLM answered, but without a payload matching the requested schema."""
    pass
