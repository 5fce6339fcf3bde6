"""Test fixtures and utilities."""

from pathlib import Path
from typing import Any, Callable

import pytest

from amount_detector.llm_client import BaseLLMProvider
from amount_detector.ocr_client import BaseOCRProvider, TextAnnotation

# Line-per-item hospital bill
SAMPLE_HOSPITAL_BILL = "Hospital Bill\nConsultation: 500\nTax: 50\nTotal: 550"

# Single-line bill with pipe separators
SAMPLE_PIPE_BILL = "Total: INR 1,200 | Paid: 1000 | Due: 200"

# Receipt with currency prefixes and grouped thousands
SAMPLE_RUPEE_RECEIPT = "Total: Rs. 1,250.00, Tax: Rs. 125.00"


class FakeLLM(BaseLLMProvider):
    """Scripted LLM: returns (or raises) queued responses in order."""

    def __init__(self, responses: list[Any]):
        self.responses = list(responses)
        self.calls: list[dict] = []

    async def generate_json(self, system_prompt: str, user_message: str, response_schema: dict) -> Any:
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "user_message": user_message,
                "response_schema": response_schema,
            }
        )
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeOCR(BaseOCRProvider):
    """OCR provider returning fixed annotations or raising a fixed error."""

    def __init__(self, annotations: list[TextAnnotation] | None = None, error: Exception | None = None):
        self.annotations = annotations or []
        self.error = error
        self.images: list[bytes] = []

    def annotate(self, image: bytes) -> list[TextAnnotation]:
        self.images.append(image)
        if self.error is not None:
            raise self.error
        return list(self.annotations)


class SleepRecorder:
    """Async sleep replacement that records requested waits."""

    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def word(text: str, x: int, y: int) -> TextAnnotation:
    """Word annotation with a 20x10 box anchored at (x, y)."""
    return TextAnnotation(
        description=text,
        vertices=((x, y), (x + 20, y), (x + 20, y + 10), (x, y + 10)),
    )


def detections_for(words: list[TextAnnotation], full_text: str) -> list[TextAnnotation]:
    """Full-image annotation followed by word annotations."""
    return [TextAnnotation(description=full_text)] + list(words)


@pytest.fixture
def sample_hospital_bill() -> str:
    return SAMPLE_HOSPITAL_BILL


@pytest.fixture
def sample_pipe_bill() -> str:
    return SAMPLE_PIPE_BILL


@pytest.fixture
def sample_rupee_receipt() -> str:
    return SAMPLE_RUPEE_RECEIPT


@pytest.fixture
def fake_llm() -> Callable[..., FakeLLM]:
    """Factory: fake_llm(response1, response2, ...)."""
    return lambda *responses: FakeLLM(list(responses))


@pytest.fixture
def fake_ocr() -> Callable[..., FakeOCR]:
    return FakeOCR


@pytest.fixture
def make_word() -> Callable[[str, int, int], TextAnnotation]:
    return word


@pytest.fixture
def make_detections() -> Callable[[list[TextAnnotation], str], list[TextAnnotation]]:
    return detections_for


@pytest.fixture
def receipt_detections() -> list[TextAnnotation]:
    """OCR output for a two-line receipt, words deliberately out of order."""
    words = [
        word("Tax", 10, 40),
        word("50", 60, 42),
        word("Total", 10, 10),
        word("550", 70, 12),
    ]
    return detections_for(words, "Total 550\nTax 50")


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def clean_env(monkeypatch):
    """Remove environment overrides so config comes from files/defaults."""
    for name in (
        "GEMINI_API_KEY",
        "GEMINI_MODEL",
        "AMOUNT_DETECTOR_LLM_ENABLED",
        "GOOGLE_VISION_API_KEY",
        "GOOGLE_VISION_ENDPOINT",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def temp_config(tmp_path) -> Path:
    """Temporary config file path for testing."""
    return tmp_path / "config.yaml"
