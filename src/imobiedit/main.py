#!/usr/bin/env python3
"""
ImobiEdit - Command Line Interface

Usage:
    imobiedit process photo.jpg --settings settings.json --output out.jpeg
    imobiedit export a.jpg b.jpg --settings settings.json --output-dir exports/
    imobiedit export *.jpg --settings settings.json --output-dir exports/ --preset OLX
    imobiedit presets
"""
import argparse
import json
import logging
import sys
from pathlib import Path

from .config import Config
from .images import ImageProcessor
from .models import EditSettings, Gallery, PORTAL_PRESETS, get_preset
from .utils import BulkExportManager


def print_json(data, indent=2):
    """Pretty print JSON data"""
    print(json.dumps(data, indent=indent, ensure_ascii=False, default=str))


def progress_callback(percentage: float, status: str):
    """Progress callback for bulk exports"""
    bar_length = 30
    filled = int(bar_length * percentage / 100)
    bar = '█' * filled + '░' * (bar_length - filled)
    print(f"\r[{bar}] {percentage:.1f}% - {status}", end='', flush=True)
    if percentage >= 100:
        print()


def load_settings(path: str) -> EditSettings:
    """Read an EditSettings JSON file (editor format); no file means defaults"""
    if not path:
        return EditSettings()
    file_path = Path(path)
    if not file_path.exists():
        print(f"Error: Settings file not found: {file_path}")
        sys.exit(1)
    with open(file_path, 'r', encoding='utf-8') as f:
        return EditSettings.from_dict(json.load(f))


def cmd_process(args):
    """Process a single image"""
    image_path = Path(args.image)
    if not image_path.exists():
        print(f"Error: File not found: {image_path}")
        sys.exit(1)

    settings = load_settings(args.settings)
    processor = ImageProcessor(quality=args.quality)
    data, metadata = processor.process_image(str(image_path), settings, args.width)
    if data is None:
        print(f"✗ Error: {metadata['error']}")
        sys.exit(1)

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(data)
    print(f"✓ Saved {output} ({metadata['final_size'][0]}x{metadata['final_size'][1]}, {metadata['file_size']} bytes)")


def cmd_export(args):
    """Export several images into one archive"""
    missing = [p for p in args.images if not Path(p).exists()]
    if missing:
        print(f"Error: File not found: {', '.join(missing)}")
        sys.exit(1)

    preset = None
    if args.preset:
        preset = get_preset(args.preset)
        if preset is None:
            print(f"Error: Unknown preset: {args.preset}")
            sys.exit(1)

    settings = load_settings(args.settings)
    gallery = Gallery()
    for path in args.images:
        gallery.add(str(path), settings=settings, name=Path(path).name)

    manager = BulkExportManager(
        processor=ImageProcessor(quality=args.quality),
        max_workers=args.workers,
        abort_on_failure=args.abort_on_failure,
    )

    print(f"Exporting {len(gallery)} images")
    print("-" * 40)
    try:
        result = manager.export(gallery.entries(), progress_callback=progress_callback,
                                target_width=args.width, preset=preset)
    except KeyboardInterrupt:
        print("\nExport cancelled")
        sys.exit(130)

    for error in result.errors:
        print(f"✗ {error['file_name']}: {error['error']}")
    for name in result.collisions:
        print(f"! Duplicate file name (kept the later image): {name}")

    if result.archive is None:
        print(f"\n✗ No archive produced ({result})")
        sys.exit(1)

    target = result.archive.save(args.output_dir)
    print(f"\n✓ {result.successful}/{result.total} images exported to {target}")


def cmd_presets(args):
    """List portal presets"""
    print_json([preset.to_dict() for preset in PORTAL_PRESETS])


def build_argparser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='ImobiEdit - batch editing of listing photos',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('--debug', action='store_true', help='Verbose logging')
    subparsers = parser.add_subparsers(dest='command', help='Commands')

    process_parser = subparsers.add_parser('process', help='Process a single image')
    process_parser.add_argument('image', help='Source image')
    process_parser.add_argument('--settings', '-s', help='EditSettings JSON file')
    process_parser.add_argument('--output', '-o', required=True, help='Output JPEG path')
    process_parser.add_argument('--width', '-w', type=int, help='Output width in pixels')
    process_parser.add_argument('--quality', type=int, default=Config.JPEG_QUALITY, help='JPEG quality')

    export_parser = subparsers.add_parser('export', help='Export images into a ZIP archive')
    export_parser.add_argument('images', nargs='+', help='Source images, in numbering order')
    export_parser.add_argument('--settings', '-s', help='EditSettings JSON file applied to every image')
    export_parser.add_argument('--output-dir', '-o', default='.', help='Directory for the archive')
    export_parser.add_argument('--width', '-w', type=int, help=f'Output width (default {Config.EXPORT_WIDTH})')
    export_parser.add_argument('--preset', '-p', help='Portal preset id (OLX, ZAP, VIVAREAL)')
    export_parser.add_argument('--workers', type=int, default=Config.EXPORT_WORKERS, help='Parallel images')
    export_parser.add_argument('--abort-on-failure', action='store_true', default=Config.EXPORT_ABORT_ON_FAILURE,
                               help='Stop on the first image that fails')
    export_parser.add_argument('--quality', type=int, default=Config.JPEG_QUALITY, help='JPEG quality')

    subparsers.add_parser('presets', help='List portal presets')
    return parser


def main(argv=None):
    parser = build_argparser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if (args.debug or Config.DEBUG) else logging.INFO,
        format='[%(levelname)s] %(name)s: %(message)s',
    )

    if not args.command:
        parser.print_help()
        sys.exit(1)

    commands = {
        'process': cmd_process,
        'export': cmd_export,
        'presets': cmd_presets,
    }
    commands[args.command](args)


if __name__ == '__main__':
    main()
