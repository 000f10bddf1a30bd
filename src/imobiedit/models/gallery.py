"""
ImobiEdit Gallery

Uploaded images keyed by id, with their display/export order kept as a
separate id sequence. Settings updates are scoped explicitly to one image or
to the whole gallery.
"""
import logging
import uuid
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from PIL import Image

from .settings import DEFAULT_SETTINGS, BadgeSettings, EditSettings, ImageReference

LOGGER = logging.getLogger(__name__)


@dataclass
class ImageEntry:
    """One uploaded image and its edit settings"""
    id: str
    source: ImageReference
    settings: EditSettings = DEFAULT_SETTINGS
    name: Optional[str] = None

    # Cached renders, keyed by preview width; dropped whenever settings change
    _previews: Dict[Tuple[str, Optional[int]], Image.Image] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def set_settings(self, settings: EditSettings) -> None:
        if settings != self.settings:
            self.settings = settings
            self._previews.clear()

    @property
    def has_cached_preview(self) -> bool:
        return bool(self._previews)

    def preview(self, processor, width: Optional[int] = None) -> Image.Image:
        """Processed preview (cached until the settings change)"""
        key = ('after', width)
        if key not in self._previews:
            self._previews[key] = processor.preview(self.source, self.settings, width)
        return self._previews[key]

    def before_preview(self, processor, width: Optional[int] = None) -> Image.Image:
        """Crop-only preview used as the "before" side of a comparison"""
        key = ('before', width)
        if key not in self._previews:
            self._previews[key] = processor.preview(self.source, self.settings.crop_only(), width)
        return self._previews[key]


class Gallery:
    """
    Ordered collection of ImageEntry objects.

    Every settings update takes either ``image_id`` or ``apply_to_all=True``.
    """

    def __init__(self):
        self._entries: Dict[str, ImageEntry] = {}
        self._order: List[str] = []

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, image_id: str) -> bool:
        return image_id in self._entries

    # ==================== ENTRIES ====================

    def add(self, source: ImageReference, settings: EditSettings = None, name: str = None) -> ImageEntry:
        """Add an uploaded image with default (or given) settings"""
        entry = ImageEntry(id=uuid.uuid4().hex, source=source, settings=settings or DEFAULT_SETTINGS, name=name)
        self._entries[entry.id] = entry
        self._order.append(entry.id)
        return entry

    def get(self, image_id: str) -> ImageEntry:
        try:
            return self._entries[image_id]
        except KeyError:
            raise KeyError(f"Unknown image id: {image_id}") from None

    def remove(self, image_id: str) -> ImageEntry:
        entry = self.get(image_id)
        del self._entries[image_id]
        self._order.remove(image_id)
        return entry

    def clear(self) -> None:
        self._entries.clear()
        self._order.clear()

    @property
    def order(self) -> List[str]:
        return list(self._order)

    def entries(self) -> List[ImageEntry]:
        return [self._entries[image_id] for image_id in self._order]

    def move(self, from_index: int, to_index: int) -> None:
        """Drag-reorder: move the id at ``from_index`` to ``to_index``"""
        if not (0 <= from_index < len(self._order)) or not (0 <= to_index < len(self._order)):
            raise IndexError(f"Cannot move {from_index} -> {to_index} in gallery of {len(self._order)}")
        image_id = self._order.pop(from_index)
        self._order.insert(to_index, image_id)

    def select(self, image_ids: Iterable[str]) -> List[ImageEntry]:
        """Entries for ``image_ids`` in gallery order (the export subset)"""
        wanted = set(image_ids)
        unknown = wanted - set(self._entries)
        if unknown:
            raise KeyError(f"Unknown image ids: {sorted(unknown)}")
        return [self._entries[image_id] for image_id in self._order if image_id in wanted]

    # ==================== SETTINGS UPDATES ====================

    def _targets(self, image_id: Optional[str], apply_to_all: bool) -> List[ImageEntry]:
        if apply_to_all == (image_id is not None):
            raise ValueError("Pass exactly one of image_id or apply_to_all=True")
        if apply_to_all:
            return self.entries()
        return [self.get(image_id)]

    def _apply(
        self,
        update: Callable[[EditSettings], EditSettings],
        image_id: Optional[str],
        apply_to_all: bool
    ) -> None:
        for entry in self._targets(image_id, apply_to_all):
            entry.set_settings(update(entry.settings))

    def update_settings(self, image_id: str = None, apply_to_all: bool = False, **changes) -> None:
        """Update top-level fields (optimized, aligned, sharpness, crop_ratio, ...)"""
        self._apply(lambda s: replace(s, **changes), image_id, apply_to_all)

    def update_watermark(self, image_id: str = None, apply_to_all: bool = False, **changes) -> None:
        self._apply(lambda s: replace(s, watermark=replace(s.watermark, **changes)), image_id, apply_to_all)

    def update_naming(self, image_id: str = None, apply_to_all: bool = False, **changes) -> None:
        self._apply(lambda s: replace(s, naming=replace(s.naming, **changes)), image_id, apply_to_all)

    def set_logo(self, logo: ImageReference, image_id: str = None, apply_to_all: bool = False) -> None:
        """Use ``logo`` as the watermark image (and enable the watermark)"""
        self.update_watermark(image_id, apply_to_all, logo=logo, enabled=True)

    def remove_logo(self, image_id: str = None, apply_to_all: bool = False) -> None:
        self.update_watermark(image_id, apply_to_all, logo=None)

    def add_badge(self, badge: BadgeSettings, image_id: str = None, apply_to_all: bool = False) -> None:
        """Append ``badge`` (painted above existing badges)"""
        def update(settings: EditSettings) -> EditSettings:
            if settings.get_badge(badge.id) is not None:
                LOGGER.warning("badge %s already present, replacing it", badge.id)
                badges = tuple(badge if b.id == badge.id else b for b in settings.badges)
            else:
                badges = settings.badges + (badge,)
            return replace(settings, badges=badges)
        self._apply(update, image_id, apply_to_all)

    def update_badge(self, badge_id: str, image_id: str = None, apply_to_all: bool = False, **changes) -> None:
        def update(settings: EditSettings) -> EditSettings:
            badges = tuple(replace(b, **changes) if b.id == badge_id else b for b in settings.badges)
            return replace(settings, badges=badges)
        self._apply(update, image_id, apply_to_all)

    def remove_badge(self, badge_id: str, image_id: str = None, apply_to_all: bool = False) -> None:
        def update(settings: EditSettings) -> EditSettings:
            return replace(settings, badges=tuple(b for b in settings.badges if b.id != badge_id))
        self._apply(update, image_id, apply_to_all)
