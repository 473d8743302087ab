from __future__ import annotations

from app.core.config import Settings, settings as default_settings
from app.ocr.base_ocr import OCREngine
from app.ocr.mock_ocr import MockOCREngine


def get_ocr_engine(settings: Settings | None = None) -> OCREngine:
    """Return a new, not yet started, instance of the configured OCR engine.

    OCR_PROVIDER options:
        mock      — synthetic price-tag text (dev/test, no deps required)
        tesseract — TesseractOCREngine (pip install pytesseract + tesseract binary)
    """
    settings = settings or default_settings
    provider = settings.ocr_provider.lower().strip()

    if provider == "mock":
        return MockOCREngine(lang=settings.ocr_lang, char_whitelist=settings.ocr_char_whitelist)

    if provider == "tesseract":
        from app.ocr.engines import TesseractOCREngine
        return TesseractOCREngine(
            lang=settings.ocr_lang,
            char_whitelist=settings.ocr_char_whitelist,
            psm=settings.tesseract_psm,
        )

    raise ValueError(f"Unknown OCR_PROVIDER={settings.ocr_provider!r}")
