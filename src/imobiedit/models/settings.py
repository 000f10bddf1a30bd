"""
ImobiEdit Edit Settings Models

Per-image settings records consumed by the image pipeline. All records are
frozen: updates go through ``dataclasses.replace`` (see ``with_changes``),
which re-runs the range clamping in ``__post_init__``.
"""
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from PIL import Image

# bytes, data URL, http(s) URL, file path or a decoded image
ImageReference = Union[bytes, str, Image.Image]


class CropRatio(Enum):
    """Target aspect ratios offered by the editor"""
    ORIGINAL = "original"
    LANDSCAPE_5_4 = "5:4"
    PORTRAIT_4_5 = "4:5"
    PORTRAIT_9_16 = "9:16"
    SQUARE = "1:1"
    LANDSCAPE_16_9 = "16:9"

    @property
    def ratio(self) -> Optional[Tuple[int, int]]:
        """(rw, rh) for a fixed ratio, None for the original framing"""
        if self is CropRatio.ORIGINAL:
            return None
        rw, rh = self.value.split(':')
        return int(rw), int(rh)

    @classmethod
    def parse(cls, value: Any) -> 'CropRatio':
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.ORIGINAL


class BrandingPosition(Enum):
    """Nine anchor positions of the 3x3 placement grid"""
    TOP_LEFT = "top-left"
    TOP_CENTER = "top-center"
    TOP_RIGHT = "top-right"
    MIDDLE_LEFT = "middle-left"
    CENTER = "center"
    MIDDLE_RIGHT = "middle-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_CENTER = "bottom-center"
    BOTTOM_RIGHT = "bottom-right"

    @classmethod
    def parse(cls, value: Any, default: 'BrandingPosition') -> 'BrandingPosition':
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            # the listing dashboard sends bottom_right style keys
            value = value.strip().lower().replace('_', '-')
        try:
            return cls(value)
        except ValueError:
            return default


class RenamePosition(Enum):
    """Where the sequence number goes relative to the user label"""
    BEFORE = "before"
    AFTER = "after"

    @classmethod
    def parse(cls, value: Any) -> 'RenamePosition':
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.AFTER


SHARPNESS_RANGE = (0, 100)
SCALE_RANGE = (5, 90)
OPACITY_RANGE = (0, 100)


def _to_int(value: Any, default: int = 0) -> int:
    try:
        return int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        return default


def _clamp(value: Any, low: int, high: int, default: int) -> int:
    # null, NaN and non-numeric values fall back to the field default
    return max(low, min(high, _to_int(value, default)))


def new_badge_id() -> str:
    """Short random id, unique within one image's badge list"""
    return uuid.uuid4().hex[:9]


@dataclass(frozen=True)
class WatermarkSettings:
    """Watermark overlay: a logo image, or text when no logo is set"""
    enabled: bool = True
    text: str = ""
    logo: Optional[ImageReference] = None
    scale: int = 15          # % of output width (font size for text)
    opacity: int = 60        # 0-100
    position: BrandingPosition = BrandingPosition.BOTTOM_RIGHT
    offset_x: int = 0
    offset_y: int = 0

    def __post_init__(self):
        object.__setattr__(self, 'scale', _clamp(self.scale, *SCALE_RANGE, default=15))
        object.__setattr__(self, 'opacity', _clamp(self.opacity, *OPACITY_RANGE, default=60))
        object.__setattr__(self, 'position', BrandingPosition.parse(self.position, BrandingPosition.BOTTOM_RIGHT))
        object.__setattr__(self, 'offset_x', _to_int(self.offset_x))
        object.__setattr__(self, 'offset_y', _to_int(self.offset_y))
        object.__setattr__(self, 'text', self.text or "")

    @property
    def is_drawable(self) -> bool:
        return self.enabled and (self.logo is not None or bool(self.text))

    def with_changes(self, **changes) -> 'WatermarkSettings':
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'enabled': self.enabled,
            'text': self.text,
            'scale': self.scale,
            'opacity': self.opacity,
            'position': self.position.value,
            'offsetX': self.offset_x,
            'offsetY': self.offset_y,
        }
        if self.logo is not None:
            data['logo'] = self.logo
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'WatermarkSettings':
        defaults = cls()
        return cls(
            enabled=bool(data.get('enabled', defaults.enabled)),
            text=data.get('text', defaults.text),
            logo=data.get('logo') or None,
            scale=data.get('scale', defaults.scale),
            opacity=data.get('opacity', defaults.opacity),
            position=data.get('position', defaults.position),
            offset_x=data.get('offsetX', data.get('offset_x', 0)),
            offset_y=data.get('offsetY', data.get('offset_y', 0)),
        )


@dataclass(frozen=True)
class BadgeSettings:
    """Image-backed quality badge ("selo")"""
    image: Optional[ImageReference] = None
    id: str = field(default_factory=new_badge_id)
    enabled: bool = True
    scale: int = 15
    opacity: int = 100
    position: BrandingPosition = BrandingPosition.TOP_LEFT
    offset_x: int = 0
    offset_y: int = 0

    def __post_init__(self):
        object.__setattr__(self, 'scale', _clamp(self.scale, *SCALE_RANGE, default=15))
        object.__setattr__(self, 'opacity', _clamp(self.opacity, *OPACITY_RANGE, default=100))
        object.__setattr__(self, 'position', BrandingPosition.parse(self.position, BrandingPosition.TOP_LEFT))
        object.__setattr__(self, 'offset_x', _to_int(self.offset_x))
        object.__setattr__(self, 'offset_y', _to_int(self.offset_y))

    @property
    def is_drawable(self) -> bool:
        return self.enabled and self.image is not None

    def with_changes(self, **changes) -> 'BadgeSettings':
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'enabled': self.enabled,
            'image': self.image,
            'scale': self.scale,
            'opacity': self.opacity,
            'position': self.position.value,
            'offsetX': self.offset_x,
            'offsetY': self.offset_y,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BadgeSettings':
        defaults = cls(id='')
        return cls(
            id=str(data.get('id') or new_badge_id()),
            enabled=bool(data.get('enabled', defaults.enabled)),
            image=data.get('image') or None,
            scale=data.get('scale', defaults.scale),
            opacity=data.get('opacity', defaults.opacity),
            position=data.get('position', defaults.position),
            offset_x=data.get('offsetX', data.get('offset_x', 0)),
            offset_y=data.get('offsetY', data.get('offset_y', 0)),
        )


@dataclass(frozen=True)
class RenameSettings:
    """Export file naming: "{format} {n}.jpeg" or "{n} {format}.jpeg" """
    format: str = "IMOBI"
    position: RenamePosition = RenamePosition.AFTER
    start_number: int = 1

    def __post_init__(self):
        object.__setattr__(self, 'position', RenamePosition.parse(self.position))
        object.__setattr__(self, 'start_number', max(1, _to_int(self.start_number, 1)))

    def file_name(self, index: int) -> str:
        """Output file name for the image at 0-based ``index`` of an export batch."""
        number = self.start_number + index
        if self.position is RenamePosition.AFTER:
            return f"{self.format} {number}.jpeg"
        return f"{number} {self.format}.jpeg"

    def with_changes(self, **changes) -> 'RenameSettings':
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'format': self.format,
            'position': self.position.value,
            'startNumber': self.start_number,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RenameSettings':
        defaults = cls()
        return cls(
            format=str(data.get('format', defaults.format)),
            position=data.get('position', defaults.position),
            start_number=data.get('startNumber', data.get('start_number', defaults.start_number)),
        )


@dataclass(frozen=True)
class EditSettings:
    """
    Complete edit settings for one image.

    Badges are painted in order, so later badges end up on top.
    """
    optimized: bool = True
    aligned: bool = False
    sharpness: int = 30
    crop_ratio: CropRatio = CropRatio.ORIGINAL
    watermark: WatermarkSettings = field(default_factory=WatermarkSettings)
    badges: Tuple[BadgeSettings, ...] = ()
    naming: RenameSettings = field(default_factory=RenameSettings)

    def __post_init__(self):
        object.__setattr__(self, 'sharpness', _clamp(self.sharpness, *SHARPNESS_RANGE, default=30))
        object.__setattr__(self, 'crop_ratio', CropRatio.parse(self.crop_ratio))
        badges = tuple(self.badges)
        ids = [badge.id for badge in badges]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Duplicate badge ids: {ids}")
        object.__setattr__(self, 'badges', badges)

    def with_changes(self, **changes) -> 'EditSettings':
        return replace(self, **changes)

    def get_badge(self, badge_id: str) -> Optional[BadgeSettings]:
        for badge in self.badges:
            if badge.id == badge_id:
                return badge
        return None

    def crop_only(self) -> 'EditSettings':
        """Settings for the "before" comparison: same framing, nothing else."""
        return EditSettings(
            optimized=False,
            aligned=False,
            sharpness=0,
            crop_ratio=self.crop_ratio,
            watermark=WatermarkSettings(enabled=False),
            badges=(),
            naming=self.naming,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'optimized': self.optimized,
            'aligned': self.aligned,
            'sharpness': self.sharpness,
            'cropRatio': self.crop_ratio.value,
            'watermark': self.watermark.to_dict(),
            'badges': [badge.to_dict() for badge in self.badges],
            'naming': self.naming.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EditSettings':
        """Create EditSettings from the editor's JSON shape (camelCase keys)"""
        defaults = cls()
        watermark = data.get('watermark')
        naming = data.get('naming')
        return cls(
            optimized=bool(data.get('optimized', defaults.optimized)),
            aligned=bool(data.get('aligned', defaults.aligned)),
            sharpness=data.get('sharpness', defaults.sharpness),
            crop_ratio=data.get('cropRatio', data.get('crop_ratio', defaults.crop_ratio)),
            watermark=WatermarkSettings.from_dict(watermark) if isinstance(watermark, dict) else defaults.watermark,
            badges=tuple(BadgeSettings.from_dict(b) for b in data.get('badges', []) if isinstance(b, dict)),
            naming=RenameSettings.from_dict(naming) if isinstance(naming, dict) else defaults.naming,
        )


# Settings for a freshly uploaded image
DEFAULT_SETTINGS = EditSettings()
