"""
ImobiEdit Models Package
"""
from .settings import (
    EditSettings,
    WatermarkSettings,
    BadgeSettings,
    RenameSettings,
    CropRatio,
    BrandingPosition,
    RenamePosition,
    DEFAULT_SETTINGS,
)
from .gallery import Gallery, ImageEntry
from .presets import PortalPreset, PORTAL_PRESETS, get_preset

__all__ = [
    'EditSettings',
    'WatermarkSettings',
    'BadgeSettings',
    'RenameSettings',
    'CropRatio',
    'BrandingPosition',
    'RenamePosition',
    'DEFAULT_SETTINGS',
    'Gallery',
    'ImageEntry',
    'PortalPreset',
    'PORTAL_PRESETS',
    'get_preset',
]
