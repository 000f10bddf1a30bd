"""
Enhancement stage: fixed brightness / contrast / saturation boost.
"""
from PIL import Image, ImageEnhance

BRIGHTNESS = 1.05
CONTRAST = 1.10
SATURATION = 1.12


def enhance(img: Image.Image, optimized: bool = True) -> Image.Image:
    """
    Apply +5% brightness, +10% contrast and +12% saturation.

    Only the RGB channels are adjusted; the alpha channel is carried over.
    Returns ``img`` unchanged when ``optimized`` is False.
    """
    if not optimized:
        return img

    alpha = img.getchannel('A') if img.mode == 'RGBA' else None
    rgb = img.convert('RGB')
    rgb = ImageEnhance.Brightness(rgb).enhance(BRIGHTNESS)
    rgb = ImageEnhance.Contrast(rgb).enhance(CONTRAST)
    rgb = ImageEnhance.Color(rgb).enhance(SATURATION)

    result = rgb.convert('RGBA')
    if alpha is not None:
        result.putalpha(alpha)
    return result
