"""
Bulk export of edited listing photos.

Runs the image pipeline over a caller-ordered subset of the gallery at the
export resolution, names every output from its own naming settings and its
position in the subset, and packs the results into one ZIP archive.
"""
import io
import logging
import threading
import time
import zipfile
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..config import Config
from ..images.processor import ImageProcessor
from ..models.presets import PortalPreset

LOGGER = logging.getLogger(__name__)

ProgressCallback = Callable[[float, str], None]


@dataclass
class ExportArchive:
    """Finished archive, ready to be downloaded or written to disk"""
    file_name: str
    data: bytes

    def save(self, directory: str) -> Path:
        path = Path(directory)
        path.mkdir(parents=True, exist_ok=True)
        target = path / self.file_name
        target.write_bytes(self.data)
        return target


def archive_file_name(timestamp: float = None) -> str:
    """``<prefix>_<epoch millis>.zip``"""
    if timestamp is None:
        timestamp = time.time()
    return f"{Config.ARCHIVE_PREFIX}_{int(timestamp * 1000)}.zip"


class ZipArchiveSink:
    """
    Collects (file name, bytes) pairs and writes them as one ZIP.

    ``add`` may be called from several threads; insertions are serialized
    with a lock. When two entries share a name, the one with the higher
    batch index wins.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: Dict[str, Tuple[int, bytes]] = {}

    def add(self, file_name: str, data: bytes, index: int) -> bool:
        """Store an entry. Returns True when ``file_name`` was already taken."""
        with self._lock:
            existing = self._entries.get(file_name)
            if existing is None or index >= existing[0]:
                self._entries[file_name] = (index, data)
            return existing is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def names(self) -> List[str]:
        """Entry names in batch order"""
        with self._lock:
            items = sorted(self._entries.items(), key=lambda item: item[1][0])
        return [name for name, _ in items]

    def build(self) -> bytes:
        with self._lock:
            items = sorted(self._entries.items(), key=lambda item: item[1][0])
        buffer = io.BytesIO()
        # JPEGs are already compressed
        with zipfile.ZipFile(buffer, mode='w', compression=zipfile.ZIP_STORED) as zf:
            for name, (_, data) in items:
                zf.writestr(name, data)
        return buffer.getvalue()


@dataclass
class ExportResult:
    """Result of a bulk export"""
    total: int = 0
    successful: int = 0
    failed: int = 0
    completed: int = 0
    results: List[Dict[str, Any]] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)
    collisions: List[str] = field(default_factory=list)
    oversized: List[str] = field(default_factory=list)
    cancelled: bool = False
    aborted: bool = False
    archive: Optional[ExportArchive] = None

    @property
    def progress(self) -> float:
        """Completed share of the batch, 0-100"""
        if self.total == 0:
            return 100.0
        return self.completed / self.total * 100

    def add_success(self, index: int, image_id: str, file_name: str, metadata: dict = None):
        self.successful += 1
        self.completed += 1
        self.results.append({
            'index': index,
            'image_id': image_id,
            'file_name': file_name,
            'status': 'success',
            'metadata': metadata or {},
        })

    def add_failure(self, index: int, image_id: str, file_name: str, error: str, error_type: str = 'error'):
        self.failed += 1
        self.completed += 1
        self.errors.append({
            'index': index,
            'image_id': image_id,
            'file_name': file_name,
            'status': 'failed',
            'error': error,
            'error_type': error_type,
        })

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total': self.total,
            'successful': self.successful,
            'failed': self.failed,
            'success_rate': f"{(self.successful / self.total * 100):.1f}%" if self.total > 0 else "0%",
            'cancelled': self.cancelled,
            'aborted': self.aborted,
            'collisions': self.collisions,
            'oversized': self.oversized,
            'archive': self.archive.file_name if self.archive else None,
            'results': self.results,
            'errors': self.errors,
        }

    def __str__(self):
        return f"ExportResult(total={self.total}, successful={self.successful}, failed={self.failed})"


class BulkExportManager:
    """
    Exports a selection of gallery images into one archive.

    Supports:
    - Bounded parallelism across images
    - Progress callbacks (percentage after every finished image)
    - Skip-and-continue or abort on per-image failures
    - Cancellation from another thread
    """

    def __init__(
        self,
        processor: ImageProcessor = None,
        max_workers: int = None,
        abort_on_failure: bool = None,
        export_width: int = None
    ):
        """
        Initialize bulk exporter

        Args:
            processor: Image processor (creates new one if not provided)
            max_workers: Concurrent pipeline runs (Config.EXPORT_WORKERS)
            abort_on_failure: Stop the batch on the first failed image
            export_width: Output width (Config.EXPORT_WIDTH, 3840)
        """
        self.processor = processor or ImageProcessor()
        self.max_workers = max(1, max_workers or Config.EXPORT_WORKERS)
        self.abort_on_failure = Config.EXPORT_ABORT_ON_FAILURE if abort_on_failure is None else abort_on_failure
        self.export_width = export_width or Config.EXPORT_WIDTH
        self._cancel = threading.Event()

    def cancel(self) -> None:
        """Stop starting new images in the running (or next) export; it exposes no archive."""
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def _export_one(self, index: int, entry, width: int) -> Optional[Tuple[str, Optional[bytes], dict]]:
        if self._cancel.is_set():
            return None
        settings = entry.settings
        file_name = settings.naming.file_name(index)
        data, metadata = self.processor.process_image(entry.source, settings, width)
        return file_name, data, metadata

    def export(
        self,
        entries: Sequence,
        progress_callback: ProgressCallback = None,
        target_width: int = None,
        preset: PortalPreset = None
    ) -> ExportResult:
        """
        Export ``entries`` (objects with ``id``, ``source`` and ``settings``)

        A ``cancel()`` issued before the export starts applies to it. The
        cancel flag is reset once the export returns, so the manager can be
        reused.

        Args:
            entries: Images to export, in output numbering order
            progress_callback: Optional callback(percent, status)
            target_width: Output width, overrides the preset and default width
            preset: Portal preset supplying the width and a file size limit

        Returns:
            ExportResult, with ``archive`` set unless the export was
            cancelled, aborted or produced nothing
        """
        try:
            return self._run(list(entries), progress_callback, target_width, preset)
        finally:
            self._cancel.clear()

    def _run(self, entries: List, progress_callback, target_width, preset) -> ExportResult:
        result = ExportResult(total=len(entries))
        if not entries:
            return result

        width = target_width or (preset.width if preset else None) or self.export_width
        sink = ZipArchiveSink()
        LOGGER.info("exporting %d images at width %d", len(entries), width)

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {
                executor.submit(self._export_one, index, entry, width): index
                for index, entry in enumerate(entries)
            }
            try:
                for future in as_completed(futures):
                    file_name = self._collect(future, futures[future], entries, result, sink, preset)
                    if file_name is not None and progress_callback:
                        progress_callback(result.progress, f"Exported: {file_name}")
            except BaseException:
                # Ctrl-C or a failing callback: queued images must not start
                # while the executor shuts down
                self._cancel.set()
                for future in futures:
                    future.cancel()
                raise

        result.results.sort(key=lambda r: r['index'])
        result.errors.sort(key=lambda r: r['index'])

        if result.aborted or self._cancel.is_set():
            result.cancelled = not result.aborted
            LOGGER.info("export stopped after %d of %d images, no archive produced",
                        result.completed, result.total)
            return result

        if result.successful:
            result.archive = ExportArchive(archive_file_name(), sink.build())
            LOGGER.info("export complete: %s (%d files)", result.archive.file_name, len(sink))
        return result

    def _collect(self, future, index: int, entries: List, result: ExportResult,
                 sink: ZipArchiveSink, preset: Optional[PortalPreset]) -> Optional[str]:
        """Record the outcome of one finished image; None when it never started."""
        entry = entries[index]
        file_name = entry.settings.naming.file_name(index)

        try:
            outcome = future.result()
        except Exception as e:
            LOGGER.exception("export of image %s failed", entry.id)
            outcome = (file_name, None, {'error': str(e), 'error_type': 'error'})

        if outcome is None:
            # cancelled before it started
            return None

        file_name, data, metadata = outcome
        if data is None:
            LOGGER.warning("skipping %s (%s): %s", entry.id, file_name, metadata.get('error'))
            result.add_failure(index, entry.id, file_name, metadata.get('error', ''),
                               metadata.get('error_type', 'error'))
            if self.abort_on_failure:
                result.aborted = True
                self._cancel.set()
            return file_name

        if sink.add(file_name, data, index):
            LOGGER.warning("file name collision in export: %s", file_name)
            result.collisions.append(file_name)
        if preset and len(data) > preset.max_size_bytes:
            LOGGER.warning("%s is %d bytes, above the %s limit of %d",
                           file_name, len(data), preset.name, preset.max_size_bytes)
            result.oversized.append(file_name)
        result.add_success(index, entry.id, file_name, metadata)
        return file_name
