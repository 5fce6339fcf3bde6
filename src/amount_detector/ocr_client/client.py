"""
OCR provider interface and Google Cloud Vision client implementation.
"""

import asyncio
import base64
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..schemas.amounts import IngestStatus

logger = logging.getLogger(__name__)


class OCRError(Exception):
    """Base exception for OCR errors."""
    pass


class OCRFailure(OCRError):
    """OCR produced nothing usable for this request.

    status is NO_AMOUNTS_FOUND when the image holds no text and ERROR when
    the provider itself failed.
    """
    def __init__(self, status: IngestStatus, reason: str):
        self.status = status
        self.reason = reason
        super().__init__(reason)


@dataclass(frozen=True)
class TextAnnotation:
    """One OCR annotation: text plus its bounding quadrilateral.

    Index 0 of a detection sequence is the full-image text, the rest are words.
    """
    description: str
    vertices: tuple[tuple[int, int], ...] = field(default_factory=tuple)

    @property
    def x(self) -> int:
        return self.vertices[0][0] if self.vertices else 0

    @property
    def y(self) -> int:
        return self.vertices[0][1] if self.vertices else 0

    @classmethod
    def from_api_response(cls, data: dict) -> "TextAnnotation":
        """Create from a Vision API textAnnotations entry.

        Vision omits coordinates that are zero, so missing x/y read as 0.
        """
        vertices = tuple(
            (int(v.get("x", 0)), int(v.get("y", 0)))
            for v in data.get("boundingPoly", {}).get("vertices", [])
        )
        return cls(description=data.get("description", ""), vertices=vertices)


class BaseOCRProvider(ABC):
    """
    Text detection capability.

    Implementations return the annotations for one image in provider order
    and raise on any provider failure. Test fakes implement this directly.
    """

    @abstractmethod
    def annotate(self, image: bytes) -> list[TextAnnotation]:
        """
        Detect text in an image.

        Args:
            image: Raw image bytes

        Returns:
            Annotations, full-image text first
        """
        pass


class VisionOCRClient(BaseOCRProvider):
    """
    Client for the Google Cloud Vision images:annotate REST method.

    Features:
    - TEXT_DETECTION on base64 image content
    - Automatic retry with backoff for 429/5xx
    """

    DEFAULT_TIMEOUT = 30

    def __init__(
        self,
        api_key: str,
        endpoint: str,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = 2,
        backoff_factor: float = 0.5,
    ):
        """
        Initialize Vision client.

        Args:
            api_key: Google Cloud API key
            endpoint: images:annotate URL
            timeout: Request timeout in seconds
            max_retries: Maximum retry attempts for transient failures
            backoff_factor: Backoff factor for retries
        """
        self.api_key = api_key
        self.endpoint = endpoint
        self.timeout = timeout

        self.max_retries = max_retries
        self.backoff_factor = backoff_factor

        # annotate() runs in worker threads; each thread gets its own session
        self._local = threading.local()
        self._sessions: list[requests.Session] = []
        self._sessions_lock = threading.Lock()

    @property
    def session(self) -> requests.Session:
        """HTTP session of the calling thread."""
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._create_session()
            self._local.session = session
            with self._sessions_lock:
                self._sessions.append(session)
        return session

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update({"Accept": "application/json"})

        retry_strategy = Retry(
            total=self.max_retries,
            backoff_factor=self.backoff_factor,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["POST"],
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        return session

    def close(self) -> None:
        """Close every HTTP session opened by this client."""
        with self._sessions_lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()
        self._local = threading.local()

    def __enter__(self) -> "VisionOCRClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def annotate(self, image: bytes) -> list[TextAnnotation]:
        """Run TEXT_DETECTION and return the text annotations."""
        payload = {
            "requests": [
                {
                    "image": {"content": base64.b64encode(image).decode("ascii")},
                    "features": [{"type": "TEXT_DETECTION"}],
                }
            ]
        }

        try:
            response = self.session.post(
                self.endpoint,
                params={"key": self.api_key},
                json=payload,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            raise OCRFailure(IngestStatus.ERROR, f"Vision request timed out: {e}")
        except requests.exceptions.RequestException as e:
            raise OCRFailure(IngestStatus.ERROR, f"Vision request failed: {e}")

        if not response.ok:
            raise OCRFailure(
                IngestStatus.ERROR,
                f"Vision API error {response.status_code}: {response.reason}",
            )

        try:
            data = response.json()
        except ValueError as e:
            raise OCRFailure(IngestStatus.ERROR, f"Vision returned invalid JSON: {e}")

        results = data.get("responses") or [{}]
        result = results[0]
        if "error" in result:
            message = result["error"].get("message", "unknown error")
            raise OCRFailure(IngestStatus.ERROR, message)

        annotations = [
            TextAnnotation.from_api_response(item) for item in result.get("textAnnotations", [])
        ]
        logger.debug("Vision returned %d annotations", len(annotations))
        return annotations


async def detect_text(provider: BaseOCRProvider, image: bytes) -> list[TextAnnotation]:
    """
    Detect text through an OCR provider without blocking the event loop.

    Raises:
        OCRFailure: NO_AMOUNTS_FOUND when only the full-image entry (or
            nothing) came back, ERROR when the provider raised
    """
    try:
        detections = await asyncio.to_thread(provider.annotate, image)
    except OCRFailure as e:
        raise OCRFailure(e.status, f"OCR provider failed: {e.reason}") from e
    except Exception as e:
        raise OCRFailure(IngestStatus.ERROR, f"OCR provider failed: {e}") from e

    if not detections or len(detections) <= 1:
        raise OCRFailure(IngestStatus.NO_AMOUNTS_FOUND, "No structured text detected by OCR")

    return list(detections)
