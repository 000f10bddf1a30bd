"""
Image processor for ImobiEdit.
Runs the fixed pipeline crop -> align -> enhance -> sharpen -> branding and
encodes the result as JPEG.
"""
import base64
import io
import logging
import time
from typing import Any, Dict, Optional, Tuple, Union

from PIL import Image

from ..config import Config
from ..models.settings import EditSettings
from .branding import Loader, draw_branding
from .enhance import enhance
from .errors import AllocationFailure, DecodeFailure
from .geometry import resolve_crop, resolve_geometry
from .loader import load_image
from .sharpen import sharpen
from .transform import draw_source

LOGGER = logging.getLogger(__name__)

ImageSource = Union[str, bytes, Image.Image]


class ImageProcessor:
    """Process listing photos according to their EditSettings."""

    def __init__(self, quality: int = None, loader: Loader = None):
        """
        Initialize the image processor.

        Args:
            quality: JPEG quality (1-95), defaults to Config.JPEG_QUALITY
            loader: Callable decoding image references (defaults to load_image)
        """
        self.quality = quality or Config.JPEG_QUALITY
        self.loader = loader or load_image

    def _allocate(self, canvas_size: Tuple[int, int]) -> None:
        width, height = canvas_size
        if width <= 0 or height <= 0:
            raise AllocationFailure(f"Invalid canvas size {width}x{height}", canvas_size)
        if width * height > Config.MAX_CANVAS_PIXELS:
            raise AllocationFailure(
                f"Canvas {width}x{height} exceeds {Config.MAX_CANVAS_PIXELS} pixels", canvas_size
            )

    def render(
        self,
        image_source: ImageSource,
        settings: EditSettings,
        target_width: Optional[int] = None
    ) -> Image.Image:
        """
        Run the pipeline and return the finished RGBA canvas.

        Args:
            image_source: Source image (bytes, data URL, URL, path or PIL Image)
            settings: Settings snapshot for this image
            target_width: Optional output width (export uses a high-resolution width)

        Raises:
            DecodeFailure: the source or a branding image could not be decoded
            AllocationFailure: the output canvas could not be created
        """
        source = self.loader(image_source)
        if source.width <= 0 or source.height <= 0:
            raise DecodeFailure("Decoded image is empty", image_source)

        geometry = resolve_geometry(source.width, source.height, settings.crop_ratio, target_width)
        self._allocate(geometry.canvas_size)

        try:
            canvas = draw_source(source, geometry.crop, geometry.canvas_size, settings.aligned)
        except (MemoryError, ValueError) as e:
            raise AllocationFailure(f"Could not allocate canvas: {e}", geometry.canvas_size) from e

        canvas = enhance(canvas, settings.optimized)
        canvas = sharpen(canvas, settings.sharpness)
        canvas = draw_branding(canvas, settings.watermark, settings.badges, self.loader)
        return canvas

    def encode_jpeg(self, img: Image.Image) -> bytes:
        """Flatten onto black (like a canvas JPEG export) and encode."""
        if img.mode == 'RGBA':
            background = Image.new('RGB', img.size, (0, 0, 0))
            background.paste(img, mask=img.getchannel('A'))
            img = background
        elif img.mode != 'RGB':
            img = img.convert('RGB')

        output = io.BytesIO()
        img.save(output, format='JPEG', quality=self.quality)
        return output.getvalue()

    def process_image(
        self,
        image_source: ImageSource,
        settings: EditSettings,
        target_width: Optional[int] = None
    ) -> Tuple[Optional[bytes], Dict[str, Any]]:
        """
        Process an image with all transformations.

        Returns:
            Tuple of (JPEG bytes, metadata dict). On failure the bytes are None
            and the metadata carries 'error' and 'error_type'.
        """
        started = time.perf_counter()
        try:
            img = self.render(image_source, settings, target_width)
            data = self.encode_jpeg(img)
        except DecodeFailure as e:
            LOGGER.warning("decode failed: %s", e.message)
            return None, {'error': e.message, 'error_type': 'decode'}
        except AllocationFailure as e:
            LOGGER.warning("allocation failed: %s", e.message)
            return None, {'error': e.message, 'error_type': 'allocation'}

        elapsed = time.perf_counter() - started
        LOGGER.debug("processed image %sx%s in %.3fs", img.width, img.height, elapsed)

        metadata = {
            'final_size': img.size,
            'crop_ratio': settings.crop_ratio.value,
            'format': 'JPEG',
            'has_watermark': settings.watermark.is_drawable,
            'badges': sum(1 for badge in settings.badges if badge.is_drawable),
            'file_size': len(data),
        }
        return data, metadata

    def preview(self, image_source: ImageSource, settings: EditSettings, width: Optional[int] = None) -> Image.Image:
        """
        Rendered RGB preview.

        Without an explicit ``width`` the preview is capped at
        Config.PREVIEW_WIDTH but never upscaled past the cropped source.
        """
        source = self.loader(image_source)
        if width is None:
            crop = resolve_crop(source.width, source.height, settings.crop_ratio)
            if crop.width > Config.PREVIEW_WIDTH:
                width = Config.PREVIEW_WIDTH
        img = self.render(source, settings, width)
        return img.convert('RGB')

    @staticmethod
    def image_to_base64(img_bytes: bytes, format: str = 'JPEG') -> str:
        """Convert image bytes to base64 data URL."""
        mime_type = f"image/{format.lower()}"
        b64 = base64.b64encode(img_bytes).decode('utf-8')
        return f"data:{mime_type};base64,{b64}"

