"""Image normalization ahead of OCR.

Phone photos of price tags arrive rotated (EXIF), oversized and in colour.
Tesseract does noticeably better on a bounded-width, high-contrast grayscale
image, and smaller inputs keep memory use down on the recognition host.
"""
from __future__ import annotations

import asyncio
import io
import logging

from PIL import Image, ImageOps

from app.core.errors import PreprocessingFailure

logger = logging.getLogger(__name__)


class ImagePreprocessor:
    def __init__(self, max_width: int = 1400) -> None:
        self._max_width = max_width

    async def process(self, image_bytes: bytes) -> bytes:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.process_sync, image_bytes)

    def process_sync(self, image_bytes: bytes) -> bytes:
        try:
            with Image.open(io.BytesIO(image_bytes)) as img:
                original_size = img.size
                out = ImageOps.exif_transpose(img)
                out = self._downsize(out)
                out = out.convert("L")
                out = ImageOps.autocontrast(out)

                buf = io.BytesIO()
                out.save(buf, format="PNG")
        except (OSError, ValueError, Image.DecompressionBombError) as exc:
            logger.error("preprocessing_failed", extra={"error": str(exc), "input_bytes": len(image_bytes)})
            raise PreprocessingFailure(str(exc)) from exc

        logger.debug(
            "preprocessing_complete",
            extra={"original_size": original_size, "output_size": out.size},
        )
        return buf.getvalue()

    def _downsize(self, img: Image.Image) -> Image.Image:
        width, height = img.size
        if width <= self._max_width:
            return img
        new_height = max(1, round(height * self._max_width / width))
        return img.resize((self._max_width, new_height), Image.Resampling.LANCZOS)
