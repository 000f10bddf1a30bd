"""
Sharpening stage: 3x3 unsharp convolution over the RGB channels.
"""
import numpy as np
from PIL import Image

# sharpness 100 -> amount ~0.667
SHARPNESS_DIVISOR = 150.0


def sharpen_kernel(sharpness: int) -> np.ndarray:
    """
    Build the unsharp kernel for ``sharpness`` (0..100)::

        [   0     -a      0  ]
        [  -a   1 + 4a   -a  ]
        [   0     -a      0  ]
    """
    amount = sharpness / SHARPNESS_DIVISOR
    return np.array([
        [0.0, -amount, 0.0],
        [-amount, 1.0 + 4.0 * amount, -amount],
        [0.0, -amount, 0.0],
    ], dtype=np.float32)


def convolve3x3(rgb: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    """
    Discrete 3x3 convolution of an (H, W, C) float array.

    Taps that fall outside the image contribute zero. Reads only from a
    zero-padded copy of ``rgb`` and accumulates into a separate array.
    """
    h, w = rgb.shape[:2]
    padded = np.pad(rgb, ((1, 1), (1, 1), (0, 0)), mode="constant", constant_values=0.0)
    out = np.zeros_like(rgb, dtype=np.float32)
    for ky in range(3):
        for kx in range(3):
            weight = float(kernel[ky, kx])
            if weight == 0.0:
                continue
            out += weight * padded[ky:ky + h, kx:kx + w]
    return out


def sharpen(img: Image.Image, sharpness: int) -> Image.Image:
    """
    Sharpen ``img`` (RGBA) with strength ``sharpness``.

    ``sharpness == 0`` returns the input untouched. Alpha passes through.
    """
    if sharpness <= 0:
        return img

    rgba = np.asarray(img.convert('RGBA'), dtype=np.uint8)
    rgb = rgba[:, :, :3].astype(np.float32)

    result = convolve3x3(rgb, sharpen_kernel(sharpness))
    result = np.clip(np.rint(result), 0, 255).astype(np.uint8)

    out = np.empty_like(rgba)
    out[:, :, :3] = result
    out[:, :, 3] = rgba[:, :, 3]
    return Image.fromarray(out)
