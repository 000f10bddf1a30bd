"""
Crop rectangle and output canvas size for a crop ratio request.
"""
import math
from dataclasses import dataclass
from typing import Optional, Tuple

from ..models.settings import CropRatio


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class CropRect:
    """Sub-region of the source image, in source pixels"""
    x: int
    y: int
    width: int
    height: int

    @property
    def box(self) -> Tuple[int, int, int, int]:
        """(left, upper, right, lower) as PIL expects it"""
        return (self.x, self.y, self.x + self.width, self.y + self.height)


@dataclass(frozen=True)
class Geometry:
    crop: CropRect
    canvas_size: Tuple[int, int]


def resolve_crop(width: int, height: int, crop_ratio: CropRatio) -> CropRect:
    """
    Centered crop of a ``width`` x ``height`` source to ``crop_ratio``.

    A source wider than the target loses width (full height kept), otherwise
    it loses height (full width kept).
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Source dimensions must be positive, got {width}x{height}")

    ratio = crop_ratio.ratio
    if ratio is None:
        return CropRect(0, 0, width, height)

    target_aspect = ratio[0] / ratio[1]
    source_aspect = width / height

    if source_aspect > target_aspect:
        # Image is wider - crop width
        new_width = max(1, min(width, round_half_up(height * target_aspect)))
        left = round_half_up((width - new_width) / 2)
        return CropRect(left, 0, new_width, height)

    # Image is taller - crop height
    new_height = max(1, min(height, round_half_up(width / target_aspect)))
    top = round_half_up((height - new_height) / 2)
    return CropRect(0, top, width, new_height)


def resolve_geometry(
    width: int,
    height: int,
    crop_ratio: CropRatio,
    target_width: Optional[int] = None
) -> Geometry:
    """
    Resolve the crop rectangle and the output canvas size.

    Args:
        width: Source width in pixels
        height: Source height in pixels
        crop_ratio: Requested framing
        target_width: Optional output width; the height follows the crop aspect

    Returns:
        Geometry with the crop rectangle and (canvas_width, canvas_height)
    """
    crop = resolve_crop(width, height, crop_ratio)
    if not target_width:
        return Geometry(crop, (crop.width, crop.height))

    factor = target_width / crop.width
    canvas_height = max(1, round_half_up(crop.height * factor))
    return Geometry(crop, (int(target_width), canvas_height))
