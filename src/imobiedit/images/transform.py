"""
Transform stage: draws the cropped source onto the output canvas, with an
optional simulated perspective alignment.
"""
from typing import Tuple

from PIL import Image

from .geometry import CropRect

# "Auto-align": vertical skew proportional to x, then a 10% zoom, both
# around the canvas center
ALIGN_SHEAR = 0.05
ALIGN_SCALE = 1.10

TRANSPARENT = (0, 0, 0, 0)


def alignment_coefficients(width: int, height: int) -> Tuple[float, ...]:
    """
    Inverse affine coefficients (a, b, c, d, e, f) for ``Image.transform``.

    The forward mapping is ``q = C + M * S * (p - C)`` with
    ``M = [[1, 0], [ALIGN_SHEAR, 1]]``, ``S = ALIGN_SCALE`` and ``C`` the
    canvas center. PIL wants the output-to-input mapping, so this returns
    ``p = C + S^-1 * M^-1 * (q - C)``.
    """
    cx, cy = width / 2, height / 2
    inv = 1 / ALIGN_SCALE
    a, b, c = inv, 0.0, cx - cx * inv
    d, e, f = -ALIGN_SHEAR * inv, inv, cy - (cy - ALIGN_SHEAR * cx) * inv
    return (a, b, c, d, e, f)


def apply_alignment(img: Image.Image) -> Image.Image:
    """Return a new image with the alignment transform applied around its center."""
    width, height = img.size
    return img.transform(
        img.size,
        Image.Transform.AFFINE,
        alignment_coefficients(width, height),
        resample=Image.BICUBIC,
        fillcolor=TRANSPARENT,
    )


def draw_source(
    source: Image.Image,
    crop: CropRect,
    canvas_size: Tuple[int, int],
    aligned: bool = False
) -> Image.Image:
    """
    Draw ``crop`` of ``source`` scaled to fill ``canvas_size``.

    The source is never modified; a new RGBA image is returned.
    """
    region = source.crop(crop.box)
    if region.size != tuple(canvas_size):
        region = region.resize(tuple(canvas_size), Image.LANCZOS)
    if region.mode != 'RGBA':
        region = region.convert('RGBA')

    if aligned:
        return apply_alignment(region)
    return region
