"""
ImobiEdit Configuration

All values come from environment variables (optionally through a .env file
in the working directory). Defaults match the behaviour of the web editor.
"""
import os
from dotenv import load_dotenv


def _clean_env(value: str) -> str:
    """Trim whitespace and surrounding quotes from env values."""
    if value is None:
        return ''
    value = value.strip()
    if (value.startswith('"') and value.endswith('"')) or (value.startswith("'") and value.endswith("'")):
        value = value[1:-1]
    return value.strip()


def _env_bool(name: str, default: str) -> bool:
    return _clean_env(os.getenv(name, default)).lower() in ('true', '1', 'yes')


# Load environment variables
load_dotenv()


class Config:
    """Configuration class for the ImobiEdit pipeline and exporter"""

    # Export
    EXPORT_WIDTH = int(_clean_env(os.getenv('IMOBIEDIT_EXPORT_WIDTH', '3840')))
    EXPORT_WORKERS = int(_clean_env(os.getenv('IMOBIEDIT_EXPORT_WORKERS', '4')))
    EXPORT_ABORT_ON_FAILURE = _env_bool('IMOBIEDIT_EXPORT_ABORT_ON_FAILURE', 'false')
    ARCHIVE_PREFIX = _clean_env(os.getenv('IMOBIEDIT_ARCHIVE_PREFIX', 'ImobiEdit_Export'))

    # Output encoding (JPEG quality 0.9 in the browser editor)
    JPEG_QUALITY = int(_clean_env(os.getenv('IMOBIEDIT_JPEG_QUALITY', '90')))

    # Previews
    PREVIEW_WIDTH = int(_clean_env(os.getenv('IMOBIEDIT_PREVIEW_WIDTH', '1200')))

    # Text watermark font (empty = search the usual system locations)
    FONT_PATH = _clean_env(os.getenv('IMOBIEDIT_FONT_PATH', ''))

    # Remote image references
    REQUEST_TIMEOUT = int(_clean_env(os.getenv('IMOBIEDIT_REQUEST_TIMEOUT', '30')))

    # Guard against absurd canvas sizes (width * height)
    MAX_CANVAS_PIXELS = int(_clean_env(os.getenv('IMOBIEDIT_MAX_CANVAS_PIXELS', '100000000')))

    DEBUG = _env_bool('IMOBIEDIT_DEBUG', 'false')
