from __future__ import annotations

from dataclasses import dataclass

DEFAULT_CHAR_WHITELIST = "0123456789.,"


@dataclass(frozen=True)
class OCRResult:
    text: str
    confidence: float | None  # 0 to 100, None when the engine reports nothing


class OCREngine:
    """Recognition engine contract.

    ``start()`` loads the underlying resource and must be called once before
    ``extract_text``; ``terminate()`` releases it. Callers never invoke these
    directly, they go through ``RecognitionEngineManager``.
    """

    def __init__(self, lang: str = "eng", char_whitelist: str = DEFAULT_CHAR_WHITELIST) -> None:
        self.lang = lang
        self.char_whitelist = char_whitelist

    async def start(self) -> None:
        return None

    async def extract_text(self, image_bytes: bytes) -> OCRResult:
        raise NotImplementedError

    async def terminate(self) -> None:
        return None
