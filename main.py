from __future__ import annotations

import argparse
import base64
import json
from pathlib import Path

from pagestamp.adapters.image_fetch import WatermarkOutcome, decode_watermark
from pagestamp.config import get_settings
from pagestamp.errors import StampError
from pagestamp.runner import JobRunner
from pagestamp.server import configure_logging, serve
from pagestamp.storage import read_input_bytes, write_bytes_atomic
from pagestamp.types import DEFAULT_CODE, DEFAULT_CODE_NAME, JobRequest


def _print_json(payload: dict) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _error(message: str, suggestion: str | None = None) -> int:
    payload = {'status': 'error', 'message': message}
    if suggestion:
        payload['suggestion'] = suggestion
    _print_json(payload)
    return 2


def cmd_render(args: argparse.Namespace) -> int:
    settings = get_settings()
    html_path = Path(args.html).expanduser().resolve()
    try:
        html = read_input_bytes(html_path, max_bytes=settings.max_html_bytes).decode('utf-8')
    except (OSError, ValueError) as exc:
        return _error(str(exc))

    request = JobRequest(
        html=html,
        watermark_url=args.watermark_url,
        code=args.code,
        code_name=args.caption,
    )
    try:
        result = JobRunner.from_settings(settings).run(request)
    except StampError as exc:
        return _error(exc.message, exc.suggestion)

    out_path = Path(args.out).expanduser().resolve()
    write_bytes_atomic(out_path, base64.b64decode(result.pdf_base64))
    _print_json(
        {
            'status': 'ok',
            'output': str(out_path),
            'pages': result.pages,
            'watermark_applied': result.watermark_applied,
            'warnings': result.warnings,
        }
    )
    return 0


def cmd_stamp(args: argparse.Namespace) -> int:
    settings = get_settings()
    pdf_path = Path(args.pdf).expanduser().resolve()
    try:
        pdf_bytes = read_input_bytes(pdf_path)
    except (OSError, ValueError) as exc:
        return _error(str(exc))

    watermark: WatermarkOutcome | None = None
    if args.watermark:
        wm_path = Path(args.watermark).expanduser().resolve()
        try:
            wm_bytes = read_input_bytes(wm_path, max_bytes=settings.max_watermark_bytes)
        except (OSError, ValueError) as exc:
            return _error(str(exc))
        watermark = decode_watermark(wm_bytes, source=str(wm_path))

    runner = JobRunner.from_settings(settings)
    try:
        annotated = runner.stamp(pdf_bytes, code=args.code, caption=args.caption, watermark=watermark)
    except StampError as exc:
        return _error(exc.message, exc.suggestion)

    out_path = Path(args.out).expanduser().resolve()
    write_bytes_atomic(out_path, annotated.pdf_bytes)
    _print_json(
        {
            'status': 'ok',
            'output': str(out_path),
            'pages': annotated.page_count,
            'watermark_applied': annotated.watermark_applied,
            'warnings': annotated.warnings,
        }
    )
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    serve(host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Render HTML to PDF and stamp every page')
    sub = parser.add_subparsers(dest='command', required=True)

    render = sub.add_parser('render', help='Render an HTML file and stamp the result')
    render.add_argument('--html', required=True, help='Path to HTML file')
    render.add_argument('--out', required=True, help='Output PDF path')
    render.add_argument('--watermark-url', required=False, help='Watermark image URL')
    render.add_argument('--code', default=DEFAULT_CODE, help='QR code payload')
    render.add_argument('--caption', default=DEFAULT_CODE_NAME, help='Caption under the QR code')
    render.set_defaults(func=cmd_render)

    stamp = sub.add_parser('stamp', help='Stamp an existing PDF')
    stamp.add_argument('--pdf', required=True, help='Path to PDF file')
    stamp.add_argument('--out', required=True, help='Output PDF path')
    stamp.add_argument('--watermark', required=False, help='Watermark image file')
    stamp.add_argument('--code', default=DEFAULT_CODE, help='QR code payload')
    stamp.add_argument('--caption', default=DEFAULT_CODE_NAME, help='Caption under the QR code')
    stamp.set_defaults(func=cmd_stamp)

    serve_cmd = sub.add_parser('serve', help='Run the HTTP server')
    serve_cmd.add_argument('--host', required=False)
    serve_cmd.add_argument('--port', type=int, required=False)
    serve_cmd.set_defaults(func=cmd_serve)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command != 'serve':
        configure_logging(get_settings().log_level)
    return int(args.func(args))


if __name__ == '__main__':
    raise SystemExit(main())
