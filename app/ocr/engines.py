"""TesseractOCREngine: local recognition through pytesseract."""
from __future__ import annotations

import asyncio
import io
import logging

from app.ocr.base_ocr import DEFAULT_CHAR_WHITELIST, OCREngine, OCRResult

logger = logging.getLogger(__name__)


class TesseractOCREngine(OCREngine):
    """OCR engine backed by the Tesseract binary (runs 100% locally).

    Install dependency:
        apt install tesseract-ocr
        pip install pytesseract

    Config (via .env):
        OCR_PROVIDER=tesseract
        OCR_LANG=eng
        OCR_CHAR_WHITELIST=0123456789.,
        TESSERACT_PSM=6
    """

    def __init__(
        self,
        lang: str = "eng",
        char_whitelist: str = DEFAULT_CHAR_WHITELIST,
        psm: int = 6,
    ) -> None:
        super().__init__(lang=lang, char_whitelist=char_whitelist)
        self._psm = psm
        self._pytesseract = None

    async def start(self) -> None:
        loop = asyncio.get_running_loop()
        version = await loop.run_in_executor(None, self._load)
        logger.info(
            "tesseract_ready",
            extra={"version": str(version), "lang": self.lang, "whitelist": self.char_whitelist},
        )

    def _load(self):
        try:
            import pytesseract  # type: ignore[import]
        except ModuleNotFoundError as exc:
            raise RuntimeError("pytesseract is not installed. Run: pip install pytesseract") from exc

        version = pytesseract.get_tesseract_version()
        languages = pytesseract.get_languages(config="")
        if self.lang not in languages:
            raise RuntimeError(f"Tesseract language data {self.lang!r} is not installed")

        self._pytesseract = pytesseract
        return version

    def _build_config(self) -> str:
        parts = [f"--psm {self._psm}", "-c preserve_interword_spaces=1"]
        if self.char_whitelist:
            parts.append(f"-c tessedit_char_whitelist={self.char_whitelist}")
        return " ".join(parts)

    async def extract_text(self, image_bytes: bytes) -> OCRResult:
        """Run Tesseract on *image_bytes* (PNG/JPEG) and return text + mean word confidence."""
        if self._pytesseract is None:
            raise RuntimeError("TesseractOCREngine.start() has not been called")
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._recognize, image_bytes)

    def _recognize(self, image_bytes: bytes) -> OCRResult:
        from PIL import Image

        pytesseract = self._pytesseract
        with Image.open(io.BytesIO(image_bytes)) as img:
            data = pytesseract.image_to_data(
                img,
                lang=self.lang,
                config=self._build_config(),
                output_type=pytesseract.Output.DICT,
            )

        lines: dict[tuple[int, int, int], list[str]] = {}
        confidences: list[float] = []

        for i, word in enumerate(data.get("text", [])):
            word = (word or "").strip()
            conf = float(data["conf"][i])
            if not word or conf < 0:
                continue
            key = (data["block_num"][i], data["par_num"][i], data["line_num"][i])
            lines.setdefault(key, []).append(word)
            confidences.append(conf)

        full_text = "\n".join(" ".join(words) for _, words in sorted(lines.items()))
        avg_confidence = sum(confidences) / len(confidences) if confidences else None

        logger.info(
            "tesseract_complete",
            extra={
                "lines": len(lines),
                "avg_confidence": round(avg_confidence, 2) if avg_confidence is not None else None,
            },
        )

        return OCRResult(text=full_text, confidence=avg_confidence)

    async def terminate(self) -> None:
        # Each recognition is a separate tesseract process; only the module handle is held
        self._pytesseract = None
