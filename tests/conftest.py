"""Shared pytest configuration and fixtures."""
from __future__ import annotations

import io
import os

import pytest

# Provide required env vars before any app module is imported
os.environ.setdefault("OCR_PROVIDER", "mock")
os.environ.setdefault("LOG_FORMAT", "console")
os.environ.setdefault("LOG_LEVEL", "WARNING")


@pytest.fixture
def make_image():
    """Build encoded image bytes: make_image(size=(w, h), fmt="PNG", exif=None)."""
    from PIL import Image

    def _make(size=(64, 32), fmt="PNG", color=(200, 200, 200), exif=None) -> bytes:
        img = Image.new("RGB", size, color)
        buf = io.BytesIO()
        if exif is not None:
            img.save(buf, format=fmt, exif=exif)
        else:
            img.save(buf, format=fmt)
        return buf.getvalue()

    return _make
