"""Extraction pipeline: orchestrates preprocessing → OCR → amount extraction.

Every failure from the collaborators leaves this module as an
``OrchestrationError`` subclass carrying the original message verbatim, so
the HTTP layer never sees a raw library exception.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from app.core.errors import OrchestrationError, PreprocessingFailure
from app.extraction.extractor import AmountExtractor, Candidate
from app.ocr.manager import RecognitionEngineManager
from app.preprocessing.preprocessor import ImagePreprocessor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceScanResult:
    text: str
    confidence: float | None
    candidates: list[Candidate]

    @property
    def best(self) -> Candidate | None:
        return self.candidates[0] if self.candidates else None


class ExtractionPipeline:
    def __init__(
        self,
        engine_manager: RecognitionEngineManager,
        preprocessor: ImagePreprocessor | None = None,
        extractor: AmountExtractor | None = None,
    ) -> None:
        self._engine_manager = engine_manager
        self._preprocessor = preprocessor or ImagePreprocessor()
        self._extractor = extractor or AmountExtractor()

    async def process_image(self, image_bytes: bytes) -> PriceScanResult:
        t0 = time.monotonic()

        normalized = await self._run_step("preprocessing", self._preprocessor.process(image_bytes))
        ocr_result = await self._run_step("ocr", self._engine_manager.recognize(normalized))

        extraction = self._extractor.extract(ocr_result.text)
        best = extraction.best

        logger.info(
            "price_scan_complete",
            extra={
                "confidence": ocr_result.confidence,
                "candidate_count": len(extraction.candidates),
                "best_amount": best.normalized if best else None,
                "duration_ms": int((time.monotonic() - t0) * 1000),
            },
        )

        return PriceScanResult(
            text=ocr_result.text,
            confidence=ocr_result.confidence,
            candidates=extraction.candidates,
        )

    async def _run_step(self, step: str, coro):
        """Await a pipeline step, shaping any failure into an OrchestrationError."""
        t0 = time.monotonic()
        try:
            return await coro
        except OrchestrationError as exc:
            logger.error(
                "pipeline_step_failed",
                extra={
                    "step": step,
                    "error_type": type(exc).__name__,
                    "error": exc.details,
                    "duration_ms": int((time.monotonic() - t0) * 1000),
                },
            )
            raise
        except Exception as exc:
            logger.exception("pipeline_step_failed", extra={"step": step, "error": str(exc)})
            error_cls = PreprocessingFailure if step == "preprocessing" else OrchestrationError
            raise error_cls(str(exc)) from exc
