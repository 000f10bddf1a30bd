"""
Image pipeline for ImobiEdit.
Handles cropping, alignment, enhancement, sharpening and branding overlays.
"""

from .errors import AllocationFailure, DecodeFailure, ImageProcessingError
from .loader import load_image
from .processor import ImageProcessor

__all__ = [
    'ImageProcessor',
    'ImageProcessingError',
    'DecodeFailure',
    'AllocationFailure',
    'load_image',
]
