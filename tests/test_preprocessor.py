"""Image preprocessing tests: orientation, bounded width, grayscale, contrast."""
from __future__ import annotations

import io

import pytest
from PIL import Image

from app.core.errors import PreprocessingFailure
from app.preprocessing.preprocessor import ImagePreprocessor


def _open(data: bytes) -> Image.Image:
    img = Image.open(io.BytesIO(data))
    img.load()
    return img


def test_preprocess_downsizes_wide_image_keeping_aspect(make_image) -> None:
    out = _open(ImagePreprocessor(max_width=1400).process_sync(make_image(size=(2800, 1000))))
    assert out.size == (1400, 500)
    assert out.format == "PNG"


def test_preprocess_never_upscales(make_image) -> None:
    out = _open(ImagePreprocessor(max_width=1400).process_sync(make_image(size=(400, 300))))
    assert out.size == (400, 300)


def test_preprocess_outputs_grayscale(make_image) -> None:
    out = _open(ImagePreprocessor().process_sync(make_image(fmt="JPEG", color=(255, 0, 0))))
    assert out.mode == "L"


def test_preprocess_applies_exif_orientation(make_image) -> None:
    exif = Image.Exif()
    exif[0x0112] = 6  # rotate 90° clockwise on display
    data = make_image(size=(200, 100), fmt="JPEG", exif=exif.tobytes())

    out = _open(ImagePreprocessor().process_sync(data))
    assert out.size == (100, 200)


def test_preprocess_stretches_contrast() -> None:
    img = Image.new("L", (10, 1))
    img.putdata([100] * 5 + [150] * 5)
    buf = io.BytesIO()
    img.convert("RGB").save(buf, format="PNG")

    out = _open(ImagePreprocessor().process_sync(buf.getvalue()))
    assert out.getextrema() == (0, 255)


@pytest.mark.parametrize("payload", [b"", b"definitely not an image"])
def test_preprocess_rejects_undecodable_input(payload: bytes) -> None:
    with pytest.raises(PreprocessingFailure) as exc_info:
        ImagePreprocessor().process_sync(payload)
    assert "cannot identify image file" in exc_info.value.details


@pytest.mark.asyncio
async def test_preprocess_async_matches_sync(make_image) -> None:
    data = make_image(size=(1600, 800))
    pre = ImagePreprocessor(max_width=800)
    assert await pre.process(data) == pre.process_sync(data)
