"""OCR engine tests: fully mocked, no tesseract binary required."""
from __future__ import annotations

import sys
from types import SimpleNamespace

import pytest

from app.core.config import Settings
from app.ocr.base_ocr import DEFAULT_CHAR_WHITELIST, OCREngine, OCRResult
from app.ocr.engines import TesseractOCREngine
from app.ocr.factory import get_ocr_engine
from app.ocr.mock_ocr import MockOCREngine


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class _FakePytesseract:
    """Stands in for the pytesseract module inside TesseractOCREngine."""

    Output = SimpleNamespace(DICT="dict")

    def __init__(self, data: dict | None = None, languages: list[str] | None = None) -> None:
        self._data = data or {}
        self._languages = languages if languages is not None else ["eng", "osd"]
        self.calls: list[dict] = []

    def get_tesseract_version(self) -> str:
        return "5.3.0"

    def get_languages(self, config: str = "") -> list[str]:
        return self._languages

    def image_to_data(self, image, lang, config, output_type):
        self.calls.append({"lang": lang, "config": config, "output_type": output_type, "size": image.size})
        return self._data


TESSERACT_DATA = {
    "text": ["", "3.49", "", "12,00", "4 820"],
    "conf": [-1, 90, "-1", 80.0, "70"],
    "block_num": [1, 1, 1, 1, 2],
    "par_num": [1, 1, 1, 1, 1],
    "line_num": [0, 1, 1, 2, 1],
}


# ---------------------------------------------------------------------------
# Base OCREngine
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_base_ocr_raises_not_implemented() -> None:
    engine = OCREngine()
    with pytest.raises(NotImplementedError):
        await engine.extract_text(b"fake bytes")


def test_base_ocr_defaults_to_digit_whitelist() -> None:
    engine = OCREngine()
    assert engine.lang == "eng"
    assert engine.char_whitelist == DEFAULT_CHAR_WHITELIST == "0123456789.,"


# ---------------------------------------------------------------------------
# MockOCREngine
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_mock_ocr_returns_result() -> None:
    engine = MockOCREngine()
    await engine.start()
    result = await engine.extract_text(b"any bytes")
    assert isinstance(result, OCRResult)
    assert "3.49" in result.text
    assert result.confidence is not None and 0.0 <= result.confidence <= 100.0
    await engine.terminate()


# ---------------------------------------------------------------------------
# TesseractOCREngine
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_tesseract_start_probes_binary_and_language(monkeypatch) -> None:
    fake = _FakePytesseract()
    monkeypatch.setitem(sys.modules, "pytesseract", fake)

    engine = TesseractOCREngine(lang="eng")
    await engine.start()
    assert engine._pytesseract is fake


@pytest.mark.asyncio
async def test_tesseract_start_fails_when_language_missing(monkeypatch) -> None:
    monkeypatch.setitem(sys.modules, "pytesseract", _FakePytesseract(languages=["osd"]))

    engine = TesseractOCREngine(lang="bul")
    with pytest.raises(RuntimeError, match="'bul'"):
        await engine.start()


@pytest.mark.asyncio
async def test_tesseract_extract_before_start_raises() -> None:
    engine = TesseractOCREngine()
    with pytest.raises(RuntimeError, match="start"):
        await engine.extract_text(b"bytes")


@pytest.mark.asyncio
async def test_tesseract_rebuilds_lines_and_averages_confidence(monkeypatch, make_image) -> None:
    fake = _FakePytesseract(data=TESSERACT_DATA)
    monkeypatch.setitem(sys.modules, "pytesseract", fake)

    engine = TesseractOCREngine(psm=7)
    await engine.start()
    result = await engine.extract_text(make_image(size=(40, 20)))

    assert result.text == "3.49\n12,00\n4 820"
    assert result.confidence == pytest.approx(80.0)

    call = fake.calls[0]
    assert call["lang"] == "eng"
    assert call["size"] == (40, 20)
    assert "--psm 7" in call["config"]
    assert "tessedit_char_whitelist=0123456789.," in call["config"]
    assert "preserve_interword_spaces=1" in call["config"]


@pytest.mark.asyncio
async def test_tesseract_no_words_gives_null_confidence(monkeypatch, make_image) -> None:
    empty = {"text": [""], "conf": [-1], "block_num": [1], "par_num": [0], "line_num": [0]}
    monkeypatch.setitem(sys.modules, "pytesseract", _FakePytesseract(data=empty))

    engine = TesseractOCREngine()
    await engine.start()
    result = await engine.extract_text(make_image())
    assert result.text == ""
    assert result.confidence is None


@pytest.mark.asyncio
async def test_tesseract_terminate_releases_handle(monkeypatch) -> None:
    monkeypatch.setitem(sys.modules, "pytesseract", _FakePytesseract())
    engine = TesseractOCREngine()
    await engine.start()
    await engine.terminate()
    with pytest.raises(RuntimeError):
        await engine.extract_text(b"bytes")


# ---------------------------------------------------------------------------
# OCR Factory
# ---------------------------------------------------------------------------

def test_ocr_factory_returns_mock() -> None:
    engine = get_ocr_engine(Settings(ocr_provider="mock"))
    assert isinstance(engine, MockOCREngine)


def test_ocr_factory_returns_tesseract_with_settings() -> None:
    engine = get_ocr_engine(
        Settings(ocr_provider="Tesseract", ocr_lang="bul", ocr_char_whitelist="0123456789,")
    )
    assert isinstance(engine, TesseractOCREngine)
    assert engine.lang == "bul"
    assert engine.char_whitelist == "0123456789,"


def test_ocr_factory_raises_on_unknown_provider() -> None:
    with pytest.raises(ValueError, match="Unknown OCR_PROVIDER"):
        get_ocr_engine(Settings(ocr_provider="unknown_engine"))
