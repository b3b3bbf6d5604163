#!/usr/bin/env python3
"""
Watermark Remover API Server
Session-scoped endpoints: upload images, select regions, run a removal
method, reset, download. Everything lives in memory for the process lifetime.
"""

from __future__ import annotations

import os
import logging
from io import BytesIO

from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from flask import Flask, request, jsonify, send_file
from flask_cors import CORS
from werkzeug.utils import secure_filename

from .exceptions import (
    CapabilityUnavailableError,
    DecodeError,
    InvalidRegionError,
    SessionNotFoundError,
)
from .models.region import Region
from .models.strategy import StrategyKind, StrategyParams
from .services.session_service import SessionService

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = set(os.getenv("ALLOWED_EXTENSIONS", "png,jpg,jpeg,gif,bmp,webp").split(","))
MAX_CONTENT_LENGTH = int(os.getenv("UPLOAD_MAX_SIZE_MB", "50")) * 1024 * 1024


def allowed_file(filename: str) -> bool:
    """Check if file extension is allowed."""
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


def _regions_from_payload(payload: dict) -> list:
    """
    Accepts {x,y,width,height}, {regions: [...]} or a drag
    {start: [x, y], end: [x, y]}.
    """
    if "regions" in payload:
        return [Region.from_dict(r) for r in payload["regions"]]
    if "start" in payload and "end" in payload:
        (sx, sy), (ex, ey) = payload["start"], payload["end"]
        return [Region.from_selection(sx, sy, ex, ey)]
    return [Region.from_dict(payload)]


def create_app(session_service: SessionService | None = None) -> Flask:
    app = Flask(__name__)
    CORS(app)  # Enable CORS for frontend communication
    app.config['MAX_CONTENT_LENGTH'] = MAX_CONTENT_LENGTH

    service = session_service or SessionService()
    app.config['SESSION_SERVICE'] = service

    # ─── Images ────────────────────────────────────────────────────
    @app.route('/api/images', methods=['POST'])
    def upload_images():
        """Decode every uploaded file into its own session."""
        if not request.files:
            return jsonify({'success': False, 'message': 'No images provided'}), 400

        results = []
        for key in request.files:
            for upload in request.files.getlist(key):
                filename = secure_filename(upload.filename or key)
                if not allowed_file(filename):
                    results.append({'filename': filename, 'success': False,
                                    'message': 'Unsupported file type'})
                    continue
                try:
                    session = service.add_image(upload.read(), filename)
                except DecodeError as e:
                    logger.warning(f"Rejected upload {filename}: {e}")
                    results.append({'filename': filename, 'success': False, 'message': str(e)})
                    continue
                results.append({'filename': filename, 'success': True, **session.summary()})

        loaded = sum(1 for r in results if r['success'])
        return jsonify({
            'success': loaded > 0,
            'images': results,
            'message': f'Loaded {loaded} of {len(results)} images'
        }), (200 if loaded else 400)

    @app.route('/api/images', methods=['GET'])
    def list_images():
        active = service.active()
        return jsonify({
            'images': [s.summary() for s in service.list_sessions()],
            'active_id': active.id if active else None,
        })

    @app.route('/api/images/<image_id>/select', methods=['POST'])
    def select_image(image_id):
        return jsonify({'success': True, 'image': service.select(image_id).summary()})

    @app.route('/api/images/<image_id>', methods=['DELETE'])
    def remove_image(image_id):
        service.remove(image_id)
        return jsonify({'success': True, 'message': 'Image removed'})

    @app.route('/api/images/clear', methods=['POST'])
    def clear_images():
        service.clear()
        return jsonify({'success': True, 'message': 'All images cleared'})

    # ─── Regions ───────────────────────────────────────────────────
    @app.route('/api/images/<image_id>/regions', methods=['POST'])
    def add_regions(image_id):
        payload = request.get_json(silent=True) or {}
        added = service.add_regions(image_id, _regions_from_payload(payload))
        return jsonify({
            'success': True,
            'added': [r.to_dict() for r in added],
            'regions': [r.to_dict() for r in service.get(image_id).regions],
        })

    @app.route('/api/images/<image_id>/regions', methods=['DELETE'])
    def clear_regions(image_id):
        service.clear_regions(image_id)
        return jsonify({'success': True, 'regions': []})

    @app.route('/api/images/<image_id>/regions/<int:index>', methods=['DELETE'])
    def remove_region(image_id, index):
        try:
            removed = service.remove_region(image_id, index)
        except IndexError as e:
            return jsonify({'success': False, 'message': str(e)}), 404
        return jsonify({
            'success': True,
            'removed': removed.to_dict(),
            'regions': [r.to_dict() for r in service.get(image_id).regions],
        })

    # ─── Processing ────────────────────────────────────────────────
    @app.route('/api/images/<image_id>/apply', methods=['POST'])
    def apply_removal(image_id):
        payload = request.get_json(silent=True) or {}
        method = payload.get('method', StrategyKind.INPAINT.value)
        try:
            kind = StrategyKind(method)
        except ValueError:
            return jsonify({'success': False, 'message': f'Unknown method {method!r}'}), 400
        params = StrategyParams.from_dict(payload.get('params'))

        if not service.get(image_id).regions:
            return jsonify({'success': False, 'message': 'Select at least one region first'}), 400

        report = service.apply_removal(
            image_id, kind, params, from_original=bool(payload.get('from_original', False))
        )
        body = {'image_id': image_id, 'method': kind.value,
                'params': payload.get('params') or {}, **report.to_dict()}
        if payload.get('include_image'):
            body['image'] = service.image_service.to_data_url(report.buffer)
        return jsonify(body)

    @app.route('/api/images/<image_id>/reset', methods=['POST'])
    def reset_image(image_id):
        session = service.reset(image_id)
        return jsonify({'success': True, 'image': session.summary()})

    @app.route('/api/images/<image_id>/background', methods=['POST'])
    def replace_background(image_id):
        payload = request.get_json(silent=True) or {}
        color = payload.get('color', 'white')
        service.replace_background(image_id, color, feather=int(payload.get('feather', 0)))
        return jsonify({'success': True, 'image_id': image_id, 'color': color})

    @app.route('/api/images/<image_id>/download')
    def download_image(image_id):
        fmt = request.args.get('format', service.image_service.OUTPUT_FORMAT).lower()
        data = service.export(image_id, fmt)
        session = service.get(image_id)
        stem = (session.name.rsplit('.', 1)[0] if session.name else session.id)
        mime = 'image/jpeg' if fmt in ('jpg', 'jpeg') else f'image/{fmt}'
        return send_file(BytesIO(data), mimetype=mime, as_attachment=True,
                         download_name=f'removed_watermark_{stem}.{fmt}')

    # ─── Misc ──────────────────────────────────────────────────────
    @app.route('/api/capabilities', methods=['GET'])
    def capabilities():
        return jsonify({
            'methods': [k.value for k in StrategyKind],
            'professional_inpaint': service.processor.professional_inpaint,
            'background_presets': service.background_service.PRESET_COLORS,
        })

    @app.route('/api/health', methods=['GET'])
    def health_check():
        """Health check endpoint."""
        return jsonify({
            'status': 'healthy',
            'message': 'Watermark Remover API is running',
            'active_sessions': len(service.list_sessions())
        })

    # ─── Error mapping ─────────────────────────────────────────────
    @app.errorhandler(SessionNotFoundError)
    def session_not_found(e):
        return jsonify({'success': False, 'message': str(e)}), 404

    @app.errorhandler(InvalidRegionError)
    def invalid_region(e):
        return jsonify({'success': False, 'message': str(e)}), 400

    @app.errorhandler(ValueError)
    def invalid_value(e):
        return jsonify({'success': False, 'message': str(e)}), 400

    @app.errorhandler(CapabilityUnavailableError)
    def capability_unavailable(e):
        logger.warning(f"Capability unavailable: {e}")
        return jsonify({'success': False, 'message': str(e)}), 503

    @app.errorhandler(413)
    def too_large(e):
        """Handle file too large error."""
        return jsonify({'error': f'File too large. Maximum size is {MAX_CONTENT_LENGTH // (1024 * 1024)}MB.'}), 413

    @app.errorhandler(500)
    def internal_error(e):
        """Handle internal server error."""
        logger.error(f"Internal server error: {e}")
        return jsonify({'error': 'Internal server error'}), 500

    return app


def main() -> None:
    # --- Centralized Logging Configuration ---
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
        datefmt='%H:%M:%S'
    )
    host = os.getenv("API_HOST", "127.0.0.1")
    port = int(os.getenv("API_PORT", "5000"))

    app = create_app()
    logger.info(f"Starting Watermark Remover API on {host}:{port} "
                f"(max upload {MAX_CONTENT_LENGTH // (1024 * 1024)}MB)")
    app.run(host=host, port=port, debug=False, threaded=True)


if __name__ == '__main__':
    main()
