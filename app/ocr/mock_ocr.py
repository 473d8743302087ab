from __future__ import annotations

from app.ocr.base_ocr import OCREngine, OCRResult


class MockOCREngine(OCREngine):
    async def extract_text(self, image_bytes: bytes) -> OCRResult:
        # Mock OCR for development/testing
        return OCRResult(
            text="Цена 3.49 лв.\nКод 20250115",
            confidence=91.0,
        )
