from __future__ import annotations

import io
from dataclasses import dataclass

import qrcode
from PIL import Image
from qrcode.exceptions import DataOverflowError

from pagestamp.errors import CodeImageError


@dataclass
class CodeImageConfig:
    pixels: int = 200
    border: int = 1
    dark: str = '#000000'
    light: str = '#FFFFFF'


def generate_code_image(payload: str, cfg: CodeImageConfig | None = None) -> bytes:
    """Encode ``payload`` as a square QR code PNG of ``cfg.pixels`` per side."""
    cfg = cfg or CodeImageConfig()
    data = str(payload or '')
    if not data.strip():
        raise CodeImageError('code payload is empty')

    qr = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=1,
        border=cfg.border,
    )
    qr.add_data(data)
    try:
        qr.make(fit=True)
    except DataOverflowError as exc:
        raise CodeImageError(f'code payload too long for a QR code ({len(data)} chars)') from exc

    image = qr.make_image(fill_color=cfg.dark, back_color=cfg.light).get_image().convert('RGB')
    image = image.resize((cfg.pixels, cfg.pixels), Image.Resampling.NEAREST)

    out = io.BytesIO()
    image.save(out, format='PNG')
    return out.getvalue()
