"""
Branding compositor: watermark and badge overlays.

Elements are painted in order (watermark first, then badges in list order),
each scaled relative to the canvas width, anchored on a 3x3 grid, shifted by
its pixel offsets and alpha-blended with a soft drop shadow.
"""
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from PIL import Image, ImageDraw, ImageFilter, ImageFont

from ..config import Config
from ..models.settings import BadgeSettings, BrandingPosition, WatermarkSettings
from .geometry import round_half_up
from .loader import load_image

LOGGER = logging.getLogger(__name__)

# (horizontal, vertical) alignment for each grid position
ANCHORS = {
    BrandingPosition.TOP_LEFT: ('left', 'top'),
    BrandingPosition.TOP_CENTER: ('center', 'top'),
    BrandingPosition.TOP_RIGHT: ('right', 'top'),
    BrandingPosition.MIDDLE_LEFT: ('left', 'center'),
    BrandingPosition.CENTER: ('center', 'center'),
    BrandingPosition.MIDDLE_RIGHT: ('right', 'center'),
    BrandingPosition.BOTTOM_LEFT: ('left', 'bottom'),
    BrandingPosition.BOTTOM_CENTER: ('center', 'bottom'),
    BrandingPosition.BOTTOM_RIGHT: ('right', 'bottom'),
}

SHADOW_OPACITY = 0.4
SHADOW_BLUR_RADIUS = 5
TEXT_COLOR = (255, 255, 255, 255)

BOLD_FONT_CANDIDATES = [
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
    "/System/Library/Fonts/Supplemental/Arial Bold.ttf",
    "/Library/Fonts/Arial Bold.ttf",
    "C:/Windows/Fonts/arialbd.ttf",
]

Loader = Callable[[object], Image.Image]


@dataclass
class PlacedElement:
    """A branding element ready to composite, with its final top-left corner"""
    kind: str  # 'watermark' | 'badge'
    image: Image.Image
    x: int
    y: int
    opacity: int

    @property
    def box(self) -> Tuple[int, int, int, int]:
        return (self.x, self.y, self.x + self.image.width, self.y + self.image.height)


def anchor_position(
    canvas_size: Tuple[int, int],
    element_size: Tuple[int, int],
    position: BrandingPosition
) -> Tuple[int, int]:
    """Top-left corner that places an element box at ``position`` on the canvas."""
    width, height = canvas_size
    el_width, el_height = element_size
    pos_x, pos_y = ANCHORS[position]

    if pos_x == 'left':
        x = 0
    elif pos_x == 'right':
        x = width - el_width
    else:  # center
        x = round_half_up((width - el_width) / 2)

    if pos_y == 'top':
        y = 0
    elif pos_y == 'bottom':
        y = height - el_height
    else:  # center
        y = round_half_up((height - el_height) / 2)

    return x, y


@lru_cache(maxsize=1)
def find_bold_font() -> str:
    if Config.FONT_PATH and Path(Config.FONT_PATH).exists():
        return Config.FONT_PATH
    for path in BOLD_FONT_CANDIDATES:
        if Path(path).exists():
            return path
    return ""


@lru_cache(maxsize=32)
def load_font(size: int) -> ImageFont.ImageFont:
    size = max(1, size)
    font_path = find_bold_font()
    if font_path:
        try:
            return ImageFont.truetype(font_path, size=size)
        except OSError as e:
            LOGGER.warning("could not load font %s: %s", font_path, e)
    return ImageFont.load_default(size=size)


def render_text(text: str, font_size: int) -> Image.Image:
    """White text on a transparent image cropped to the text's bounding box."""
    font = load_font(font_size)
    x0, y0, x1, y1 = font.getbbox(text)
    width, height = max(1, x1 - x0), max(1, y1 - y0)

    img = Image.new('RGBA', (width, height), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)
    draw.text((-x0, -y0), text, font=font, fill=TEXT_COLOR)
    return img


def scale_to_width(img: Image.Image, canvas_width: int, scale: int) -> Image.Image:
    """Resize to ``scale``% of the canvas width, keeping the element's aspect ratio."""
    target_width = canvas_width * scale / 100
    target_height = target_width * img.height / img.width
    size = (max(1, round_half_up(target_width)), max(1, round_half_up(target_height)))
    if img.size == size:
        return img
    return img.resize(size, Image.LANCZOS)


def apply_opacity(img: Image.Image, opacity: int) -> Image.Image:
    if opacity >= 100:
        return img
    img = img.copy()
    factor = max(0, opacity) / 100.0
    alpha = img.getchannel('A').point(lambda p: int(p * factor))
    img.putalpha(alpha)
    return img


def with_drop_shadow(element: Image.Image) -> Tuple[Image.Image, int]:
    """
    Element composited over its blurred shadow.

    Returns the sprite and the padding added on every side.
    """
    pad = SHADOW_BLUR_RADIUS * 3
    size = (element.width + 2 * pad, element.height + 2 * pad)

    mask = Image.new('L', size, 0)
    mask.paste(element.getchannel('A'), (pad, pad))
    mask = mask.filter(ImageFilter.GaussianBlur(SHADOW_BLUR_RADIUS))
    mask = mask.point(lambda p: int(p * SHADOW_OPACITY))

    sprite = Image.new('RGBA', size, (0, 0, 0, 0))
    sprite.putalpha(mask)
    sprite.alpha_composite(element, (pad, pad))
    return sprite, pad


def composite(canvas: Image.Image, placed: PlacedElement) -> Image.Image:
    """Blend one placed element (and its shadow) onto ``canvas``."""
    element = apply_opacity(placed.image, placed.opacity)
    sprite, pad = with_drop_shadow(element)

    # paste() clips at the canvas edges, so elements pushed off-canvas by
    # their offsets are simply cut
    layer = Image.new('RGBA', canvas.size, (0, 0, 0, 0))
    layer.paste(sprite, (placed.x - pad, placed.y - pad))
    return Image.alpha_composite(canvas, layer)


def place_watermark(
    watermark: WatermarkSettings,
    canvas_size: Tuple[int, int],
    loader: Loader = load_image
) -> Optional[PlacedElement]:
    if not watermark.is_drawable:
        return None

    canvas_width = canvas_size[0]
    if watermark.logo is not None:
        element = scale_to_width(loader(watermark.logo), canvas_width, watermark.scale)
    else:
        # scale is reused as the font size proportion
        font_size = max(1, round_half_up(canvas_width * watermark.scale / 100))
        element = render_text(watermark.text, font_size)

    x, y = anchor_position(canvas_size, element.size, watermark.position)
    return PlacedElement('watermark', element, x + watermark.offset_x, y + watermark.offset_y, watermark.opacity)


def place_badge(
    badge: BadgeSettings,
    canvas_size: Tuple[int, int],
    loader: Loader = load_image
) -> Optional[PlacedElement]:
    if not badge.is_drawable:
        return None

    element = scale_to_width(loader(badge.image), canvas_size[0], badge.scale)
    x, y = anchor_position(canvas_size, element.size, badge.position)
    return PlacedElement('badge', element, x + badge.offset_x, y + badge.offset_y, badge.opacity)


def layout_branding(
    canvas_size: Tuple[int, int],
    watermark: WatermarkSettings,
    badges: Sequence[BadgeSettings],
    loader: Loader = load_image
) -> List[PlacedElement]:
    """
    Decode, scale and position every drawable element, in paint order.

    Raises:
        DecodeFailure: if a logo or badge image cannot be decoded
    """
    placed = []
    element = place_watermark(watermark, canvas_size, loader)
    if element is not None:
        placed.append(element)
    for badge in badges:
        element = place_badge(badge, canvas_size, loader)
        if element is not None:
            placed.append(element)
    return placed


def draw_branding(
    canvas: Image.Image,
    watermark: WatermarkSettings,
    badges: Sequence[BadgeSettings],
    loader: Loader = load_image
) -> Image.Image:
    """Return a new image with the watermark and badges painted on ``canvas``."""
    placed = layout_branding(canvas.size, watermark, badges, loader)
    for element in placed:
        LOGGER.debug("compositing %s at %s", element.kind, element.box)
        canvas = composite(canvas, element)
    return canvas
