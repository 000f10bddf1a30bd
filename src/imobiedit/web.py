"""
ImobiEdit HTTP API - thin Flask layer over the pipeline and the exporter.

Images travel as base64 or data URLs; logos and badges inside settings must
be data URLs as well (file paths and remote URLs are refused here).
"""
import io
import logging

from flask import Flask, jsonify, request, send_file

from .config import Config
from .images import AllocationFailure, DecodeFailure, ImageProcessor
from .images.loader import decode_base64_image
from .models import EditSettings, ImageEntry, PORTAL_PRESETS, get_preset
from .utils import BulkExportManager

LOGGER = logging.getLogger(__name__)


class ApiRequestError(Exception):
    """Malformed API request"""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


def _parse_settings(data) -> EditSettings:
    if data is None:
        return EditSettings()
    if not isinstance(data, dict):
        raise ApiRequestError("settings must be an object")
    settings = EditSettings.from_dict(data)

    references = [settings.watermark.logo] + [badge.image for badge in settings.badges]
    for reference in references:
        if reference is not None and not (isinstance(reference, str) and reference.startswith('data:')):
            raise ApiRequestError("logo and badge images must be data URLs")
    return settings


def _parse_image(payload):
    if not payload or not isinstance(payload, str):
        raise ApiRequestError("No image provided")
    return decode_base64_image(payload)


def _parse_width(value):
    if value is None:
        return None
    try:
        width = int(value)
    except (TypeError, ValueError):
        raise ApiRequestError(f"Invalid width: {value}") from None
    if width <= 0:
        raise ApiRequestError(f"Invalid width: {value}")
    return width


def create_app(processor: ImageProcessor = None) -> Flask:
    """Application factory"""
    app = Flask(__name__)
    processor = processor or ImageProcessor()

    @app.errorhandler(ApiRequestError)
    def handle_bad_request(e):
        return jsonify({'success': False, 'error': e.message}), 400

    @app.errorhandler(DecodeFailure)
    def handle_decode_failure(e):
        return jsonify({'success': False, 'error': e.message, 'error_type': 'decode'}), 400

    @app.errorhandler(AllocationFailure)
    def handle_allocation_failure(e):
        return jsonify({'success': False, 'error': e.message, 'error_type': 'allocation'}), 422

    @app.route('/health', methods=['GET'])
    def health():
        return jsonify({'status': 'healthy'})

    @app.route('/api/presets', methods=['GET'])
    def api_presets():
        return jsonify([preset.to_dict() for preset in PORTAL_PRESETS])

    @app.route('/api/images/process', methods=['POST'])
    def api_process_image():
        """Process a single image from base64 data"""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ApiRequestError("JSON body required")

        source = _parse_image(data.get('image'))
        settings = _parse_settings(data.get('settings'))
        width = _parse_width(data.get('width'))

        img = processor.render(source, settings, width)
        output = processor.encode_jpeg(img)
        LOGGER.info("processed image %sx%s (%d bytes)", img.width, img.height, len(output))

        return jsonify({
            'success': True,
            'image': processor.image_to_base64(output),
            'metadata': {
                'final_size': list(img.size),
                'file_size': len(output),
                'format': 'JPEG',
            }
        })

    @app.route('/api/images/export', methods=['POST'])
    def api_export_images():
        """Export a list of {image, settings} items as a ZIP download"""
        data = request.get_json(silent=True)
        if not isinstance(data, dict) or not isinstance(data.get('images'), list) or not data['images']:
            raise ApiRequestError("images list required")

        preset = None
        if data.get('preset'):
            preset = get_preset(data['preset'])
            if preset is None:
                raise ApiRequestError(f"Unknown preset: {data['preset']}")

        entries = []
        for index, item in enumerate(data['images']):
            if not isinstance(item, dict):
                raise ApiRequestError(f"images[{index}] must be an object")
            entries.append(ImageEntry(
                id=str(item.get('id') or index),
                source=_parse_image(item.get('image')),
                settings=_parse_settings(item.get('settings')),
            ))

        manager = BulkExportManager(processor=processor)
        result = manager.export(entries, target_width=_parse_width(data.get('width')), preset=preset)
        if result.archive is None:
            return jsonify({'success': False, 'error': 'Nothing exported', 'result': result.to_dict()}), 422

        return send_file(
            io.BytesIO(result.archive.data),
            mimetype='application/zip',
            as_attachment=True,
            download_name=result.archive.file_name,
        )

    return app


def run():
    """Development server entry point"""
    logging.basicConfig(level=logging.DEBUG if Config.DEBUG else logging.INFO)
    create_app().run(debug=Config.DEBUG)


if __name__ == '__main__':
    run()
