"""LLM provider interface and Google Gemini client.

Privacy constraint: prompts and document text are never logged above DEBUG.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

import httpx

from .backoff import Sleep, call_with_backoff
from .exceptions import LLMResponseError

if TYPE_CHECKING:
    from ..config import LLMConfig

logger = logging.getLogger(__name__)


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are accepted by json.loads but are not JSON numbers
    raise LLMResponseError(f"LLM returned non-finite number: {name}")


class BaseLLMProvider(ABC):
    """Structured-output LLM capability.

    Implementations either return JSON matching response_schema or raise an
    LLMError. Stages never see transport details.
    """

    @abstractmethod
    async def generate_json(
        self,
        system_prompt: str,
        user_message: str,
        response_schema: dict,
    ) -> Any:
        """Ask the model for structured output.

        Args:
            system_prompt: System instruction.
            user_message: User message.
            response_schema: Required output schema.

        Returns:
            The parsed JSON value produced by the model.
        """
        pass


class GeminiClient(BaseLLMProvider):
    """Gemini generateContent client with exponential backoff.

    Every call is retried per LLMConfig.max_retries/base_delay_seconds.
    The client owns its httpx.AsyncClient unless one is passed in.
    """

    def __init__(
        self,
        config: LLMConfig,
        client: httpx.AsyncClient | None = None,
        sleep: Sleep | None = None,
    ) -> None:
        """Initialize the Gemini client.

        Args:
            config: LLM configuration (key, model, retry policy).
            client: Optional preconfigured HTTP client.
            sleep: Optional backoff sleep (tests pass a recorder).
        """
        self.config = config
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout_seconds, connect=10.0),
        )
        self._sleep = sleep

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> GeminiClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def build_payload(self, system_prompt: str, user_message: str, response_schema: dict) -> dict:
        """Build a generateContent request body."""
        return {
            "contents": [{"parts": [{"text": user_message}]}],
            "systemInstruction": {"parts": [{"text": system_prompt}]},
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": response_schema,
            },
        }

    async def generate_json(
        self,
        system_prompt: str,
        user_message: str,
        response_schema: dict,
    ) -> Any:
        payload = self.build_payload(system_prompt, user_message, response_schema)
        logger.debug("Calling Gemini model %s", self.config.model)

        kwargs: dict[str, Any] = {}
        if self._sleep is not None:
            kwargs["sleep"] = self._sleep

        result = await call_with_backoff(
            self._client,
            "POST",
            self.config.generate_url(),
            max_retries=self.config.max_retries,
            base_delay=self.config.base_delay_seconds,
            json=payload,
            headers={
                "Content-Type": "application/json",
                "x-goog-api-key": self.config.api_key or "",
            },
            **kwargs,
        )

        content = self._extract_text(result)
        try:
            return json.loads(content, parse_constant=_reject_constant)
        except json.JSONDecodeError as e:
            raise LLMResponseError(f"LLM returned malformed JSON: {e}") from e

    @staticmethod
    def _extract_text(result: Any) -> str:
        """Pull candidates[0].content.parts[0].text out of a response body."""
        try:
            text = result["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            text = None

        if not text or not isinstance(text, str):
            raise LLMResponseError("LLM returned no structured data")
        return text
