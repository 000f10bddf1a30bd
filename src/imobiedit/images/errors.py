"""
Errors raised by the image pipeline.
"""
from typing import Any, Optional, Tuple


class ImageProcessingError(Exception):
    """Base exception for pipeline failures"""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class DecodeFailure(ImageProcessingError):
    """A source or branding image could not be decoded"""
    def __init__(self, message: str, source: Any = None):
        self.source = source
        super().__init__(message)


class AllocationFailure(ImageProcessingError):
    """The output surface could not be created"""
    def __init__(self, message: str, size: Optional[Tuple[int, int]] = None):
        self.size = size
        super().__init__(message)
