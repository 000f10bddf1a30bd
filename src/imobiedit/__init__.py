"""
ImobiEdit - batch editing and export of real-estate photographs
"""
from .config import Config
from .images import ImageProcessor, ImageProcessingError, DecodeFailure, AllocationFailure
from .models import (
    EditSettings, WatermarkSettings, BadgeSettings, RenameSettings,
    CropRatio, BrandingPosition, RenamePosition, Gallery, ImageEntry,
    PortalPreset, PORTAL_PRESETS, get_preset
)
from .utils import BulkExportManager, ExportResult, ExportArchive

__version__ = '1.0.0'
__all__ = [
    'Config',
    # Images
    'ImageProcessor',
    'ImageProcessingError',
    'DecodeFailure',
    'AllocationFailure',
    # Models
    'EditSettings',
    'WatermarkSettings',
    'BadgeSettings',
    'RenameSettings',
    'CropRatio',
    'BrandingPosition',
    'RenamePosition',
    'Gallery',
    'ImageEntry',
    'PortalPreset',
    'PORTAL_PRESETS',
    'get_preset',
    # Utils
    'BulkExportManager',
    'ExportResult',
    'ExportArchive',
]
