"""
pagestamp HTTP server - Flask front end for the render + stamp pipeline
=======================================================================

Endpoints:
  - POST /api/generate-pdf   (alias: /generate-pdf)
  - GET  /health
  - GET  /

Request body (JSON, every field optional):
  html          HTML to render            default '<h1>Hello World</h1>'
  watermarkUrl  image URL for watermark   default none
  code          QR code payload           default 'https://example.com'
  codeName      caption under the code    default 'Sample Code'
"""

from __future__ import annotations

import logging
import traceback

from flask import Flask, jsonify, request
from flask_cors import CORS
from pydantic import ValidationError

from pagestamp.config import Settings, get_settings
from pagestamp.errors import RequestError, StampError
from pagestamp.runner import JobRunner
from pagestamp.types import JobRequest


logger = logging.getLogger(__name__)

GENERATE_PATHS = ('/api/generate-pdf', '/generate-pdf')


def configure_logging(level: str = 'INFO') -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )


def _parse_request() -> JobRequest:
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise RequestError('request body must be a JSON object')
    try:
        return JobRequest.model_validate(data)
    except ValidationError as exc:
        details = '; '.join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise RequestError(f'invalid request: {details}') from exc


def create_app(settings: Settings | None = None, *, runner: JobRunner | None = None) -> Flask:
    settings = settings or get_settings()
    runner = runner or JobRunner.from_settings(settings)
    policy = runner.policy

    app = Flask(__name__)
    CORS(app)

    @app.route('/', methods=['GET'])
    def index():
        return jsonify(
            {
                'service': settings.app_name,
                'status': 'running',
                'endpoints': {
                    'POST /api/generate-pdf': 'Render HTML to PDF and stamp every page',
                    'GET /health': 'Health check',
                    'GET /': 'This page',
                },
            }
        )

    @app.route('/health', methods=['GET'])
    def health():
        return jsonify(
            {
                'status': 'healthy',
                'policy': {
                    'anchor': policy.anchor.value,
                    'code_size': policy.code_size,
                    'font_size': policy.font_size,
                    'margin': policy.margin,
                    'watermark_opacity': policy.watermark_opacity,
                    'code_opacity': policy.code_opacity,
                    'bounding_fraction': policy.bounding_fraction,
                },
                'render_timeout_seconds': settings.render_timeout_seconds,
                'watermark_timeout_seconds': settings.watermark_timeout_seconds,
            }
        )

    def generate_pdf():
        if request.method != 'POST':
            return jsonify({'error': 'Method not allowed'}), 405

        try:
            job_request = _parse_request()
        except RequestError as e:
            return jsonify({'error': 'Invalid request', 'details': e.message}), 400

        try:
            result = runner.run(job_request)
        except RequestError as e:
            return jsonify({'error': 'Invalid request', 'details': e.message}), 400
        except StampError as e:
            logger.error('Error generating PDF (%s): %s', type(e).__name__, e.message)
            payload = {'error': 'Failed to generate PDF', 'details': e.message}
            if e.suggestion:
                payload['suggestion'] = e.suggestion
            return jsonify(payload), 500
        except Exception as e:
            logger.error('Error generating PDF: %s', e)
            logger.error(traceback.format_exc())
            return (
                jsonify(
                    {
                        'error': 'Failed to generate PDF',
                        'details': str(e),
                        'suggestion': 'Check the HTML content and try again',
                    }
                ),
                500,
            )

        return jsonify(result.to_payload()), 200

    for path in GENERATE_PATHS:
        app.add_url_rule(
            path,
            endpoint=f'generate_pdf{path.replace("/", "_").replace("-", "_")}',
            view_func=generate_pdf,
            methods=['GET', 'POST', 'PUT', 'PATCH', 'DELETE'],
        )

    return app


def serve(host: str | None = None, port: int | None = None) -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    app = create_app(settings)
    host = host or settings.server_host
    port = port or settings.server_port
    logger.info('=' * 70)
    logger.info('Starting %s', settings.app_name)
    logger.info('Server: http://%s:%s', host, port)
    logger.info('=' * 70)
    app.run(host=host, port=port, debug=False, threaded=True)
