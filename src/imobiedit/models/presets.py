"""
Listing portal export presets
"""
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class PortalPreset:
    """Recommended export width and upload limit for a listing portal"""
    id: str
    name: str
    width: int
    max_size_bytes: int
    watermark_allowed: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


PORTAL_PRESETS: List[PortalPreset] = [
    PortalPreset(id='OLX', name='OLX Brasil', width=1280, max_size_bytes=5 * 1024 * 1024),
    PortalPreset(id='ZAP', name='Zap Imóveis', width=1920, max_size_bytes=10 * 1024 * 1024),
    PortalPreset(id='VIVAREAL', name='VivaReal', width=1920, max_size_bytes=10 * 1024 * 1024),
]


def get_preset(preset_id: Optional[str]) -> Optional[PortalPreset]:
    if not preset_id:
        return None
    wanted = preset_id.strip().upper()
    for preset in PORTAL_PRESETS:
        if preset.id == wanted:
            return preset
    return None
