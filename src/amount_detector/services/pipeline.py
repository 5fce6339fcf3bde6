"""Pipeline orchestration service.

Runs ingestion → normalization → classification → reconciliation strictly
in sequence for one request. Later stages depend on earlier results, so
there is no internal parallelism; separate requests share no mutable state
and may run concurrently.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional

from ..config import Config
from ..llm_client import GeminiClient
from ..ocr_client import VisionOCRClient
from ..schemas.amounts import RawInput, Report
from .classification import ClassificationService
from .ingestion import IngestionService
from .normalization import NormalizationService
from .reconciliation import reconcile

if TYPE_CHECKING:
    from ..llm_client import BaseLLMProvider
    from ..ocr_client import BaseOCRProvider

logger = logging.getLogger(__name__)


class AmountDetectionPipeline:
    """Sequences the four stages and assembles the report.

    Providers are injected; pass None to run without that capability (text
    input still works without OCR, and both LLM stages fall back without
    an LLM).
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        llm: Optional[BaseLLMProvider] = None,
        ocr: Optional[BaseOCRProvider] = None,
    ) -> None:
        self.config = config or Config()
        self.llm = llm
        self.ocr = ocr

        self.ingestion = IngestionService(ocr, line_tolerance=self.config.line_tolerance)
        self.normalization = NormalizationService(llm)
        self.classification = ClassificationService(llm)

    @classmethod
    def from_config(cls, config: Config) -> AmountDetectionPipeline:
        """Build a pipeline with the real Gemini and Vision clients.

        A client is only created when its API key is configured.
        """
        llm = GeminiClient(config.llm) if config.llm.is_usable else None
        ocr = None
        if config.ocr.api_key:
            ocr = VisionOCRClient(
                api_key=config.ocr.api_key,
                endpoint=config.ocr.endpoint,
                timeout=config.ocr.timeout_seconds,
                max_retries=config.ocr.max_retries,
                backoff_factor=config.ocr.backoff_factor,
            )
        return cls(config=config, llm=llm, ocr=ocr)

    async def aclose(self) -> None:
        if isinstance(self.llm, GeminiClient):
            await self.llm.aclose()
        if isinstance(self.ocr, VisionOCRClient):
            self.ocr.close()

    async def __aenter__(self) -> AmountDetectionPipeline:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def run(self, raw_input: RawInput) -> Report:
        """
        Process one input end to end.

        Returns early (status and reason only) when ingestion is not OK.

        Raises:
            InputError: The input payload is malformed.
        """
        ingest = await self.ingestion.ingest(raw_input)
        if not ingest.ok:
            logger.info("Ingestion ended with %s: %s", ingest.status.value, ingest.reason)
            return Report(ingest=ingest)

        normalization = await self.normalization.normalize(ingest)
        classification = await self.classification.classify(ingest, normalization)
        reconciliation = reconcile(
            ingest, classification, tolerance=self.config.match_tolerance
        )

        found = sum(1 for amount in reconciliation.amounts if amount.source_found)
        logger.info(
            "Extracted %d amounts (%d linked to source, currency %s)",
            len(reconciliation.amounts),
            found,
            reconciliation.currency,
        )

        return Report(
            ingest=ingest,
            normalization=normalization,
            classification=classification,
            reconciliation=reconciliation,
        )

    async def run_text(self, text: str) -> Report:
        return await self.run(RawInput.text(text))

    async def run_image(self, image: bytes) -> Report:
        return await self.run(RawInput.image(image))
