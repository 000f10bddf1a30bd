"""
Pytest configuration and fixtures for ImobiEdit tests.
"""
import base64
import io
import os
import sys

import numpy as np
import pytest
from PIL import Image

# Allow running the suite from a source checkout
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from imobiedit.images import ImageProcessor  # noqa: E402
from imobiedit.models import EditSettings, WatermarkSettings  # noqa: E402


def make_gradient(width: int, height: int) -> Image.Image:
    """RGBA image whose pixels all differ (horizontal + vertical gradients)"""
    xs = np.linspace(0, 255, width, dtype=np.float32)
    ys = np.linspace(0, 255, height, dtype=np.float32)
    r = np.tile(xs, (height, 1))
    g = np.tile(ys[:, None], (1, width))
    b = (r + g) / 2
    a = np.full((height, width), 255, dtype=np.float32)
    arr = np.stack([r, g, b, a], axis=-1).astype(np.uint8)
    return Image.fromarray(arr)


def solid(width: int, height: int, color=(255, 0, 0, 255)) -> Image.Image:
    return Image.new('RGBA', (width, height), color)


def to_png_bytes(img: Image.Image) -> bytes:
    buffer = io.BytesIO()
    img.save(buffer, format='PNG')
    return buffer.getvalue()


def to_data_url(img: Image.Image) -> str:
    return "data:image/png;base64," + base64.b64encode(to_png_bytes(img)).decode('ascii')


def plain_settings(**changes) -> EditSettings:
    """Every stage off: the output is the crop of the source"""
    settings = EditSettings(
        optimized=False,
        aligned=False,
        sharpness=0,
        watermark=WatermarkSettings(enabled=False),
    )
    return settings.with_changes(**changes)


@pytest.fixture
def gradient_image():
    return make_gradient(1200, 800)


@pytest.fixture
def small_image():
    return make_gradient(120, 80)


@pytest.fixture
def red_logo_bytes():
    return to_png_bytes(solid(100, 50, (255, 0, 0, 255)))


@pytest.fixture
def processor():
    return ImageProcessor()
