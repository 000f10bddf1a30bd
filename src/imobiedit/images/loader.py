"""
Blocking decode of image references.

Every image that enters the pipeline (the photo itself, a watermark logo or
a badge) goes through ``load_image``, which either returns a fully decoded
RGBA image or raises ``DecodeFailure``.
"""
import base64
import binascii
import io
import logging
import os
from typing import Union

import requests
from PIL import Image, UnidentifiedImageError

from ..config import Config
from .errors import DecodeFailure

LOGGER = logging.getLogger(__name__)

ImageSource = Union[str, bytes, Image.Image]


def _describe(image_source: ImageSource) -> str:
    if isinstance(image_source, str):
        return image_source[:40] + ('...' if len(image_source) > 40 else '')
    return type(image_source).__name__


def _open_bytes(data: bytes, image_source: ImageSource) -> Image.Image:
    try:
        img = Image.open(io.BytesIO(data))
        # Image.open is lazy; force the decode here so errors surface now
        img.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise DecodeFailure(f"Cannot decode image from {_describe(image_source)}: {e}", image_source) from e
    return img


def _fetch_url(url: str) -> bytes:
    try:
        response = requests.get(url, timeout=Config.REQUEST_TIMEOUT)
        response.raise_for_status()
    except requests.RequestException as e:
        raise DecodeFailure(f"Cannot download image {url}: {e}", url) from e
    return response.content


def _to_rgba(img: Image.Image) -> Image.Image:
    # Palette, grayscale, binary and CMYK sources all end up as RGBA
    if img.mode != 'RGBA':
        img = img.convert('RGBA')
    return img


def load_image(image_source: ImageSource) -> Image.Image:
    """
    Decode an image from any supported reference.

    Args:
        image_source: raw bytes, data URL, http(s) URL, file path or PIL Image

    Returns:
        Decoded RGBA PIL Image (a copy when a PIL Image is passed in)

    Raises:
        DecodeFailure: if the reference cannot be read or decoded
    """
    if isinstance(image_source, Image.Image):
        return _to_rgba(image_source.copy())

    if isinstance(image_source, (bytes, bytearray)):
        return _to_rgba(_open_bytes(bytes(image_source), image_source))

    if isinstance(image_source, str):
        if image_source.startswith('data:'):
            if ',' not in image_source:
                raise DecodeFailure("Malformed data URL", image_source)
            encoded = image_source.split(',', 1)[1]
            try:
                data = base64.b64decode(encoded, validate=True)
            except (binascii.Error, ValueError) as e:
                raise DecodeFailure(f"Invalid base64 image data: {e}", image_source) from e
            return _to_rgba(_open_bytes(data, image_source))

        if image_source.startswith(('http://', 'https://')):
            LOGGER.debug("downloading image %s", image_source)
            return _to_rgba(_open_bytes(_fetch_url(image_source), image_source))

        if os.path.isfile(image_source):
            with open(image_source, 'rb') as f:
                data = f.read()
            return _to_rgba(_open_bytes(data, image_source))

        raise DecodeFailure(f"Image file not found: {_describe(image_source)}", image_source)

    raise DecodeFailure(f"Cannot load image from: {type(image_source)}", image_source)


def decode_base64_image(payload: str) -> Image.Image:
    """Decode a bare base64 string or a data URL (as sent by the web editor)."""
    if not payload.startswith('data:'):
        payload = f"data:image/jpeg;base64,{payload}"
    return load_image(payload)
