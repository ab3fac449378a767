from __future__ import annotations

import io
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError


@dataclass(frozen=True)
class PreparedImage:
    """PNG stream with the draw opacity baked into its alpha channel."""

    stream: bytes
    width: int
    height: int


@dataclass(frozen=True)
class ImageOutcome:
    image: PreparedImage | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.image is not None


def prepare_image(data: bytes | None, *, opacity: float) -> ImageOutcome:
    if not data:
        return ImageOutcome(error='image buffer is empty')
    try:
        with Image.open(io.BytesIO(data)) as src:
            src.load()
            rgba = src.convert('RGBA')
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        return ImageOutcome(error=f'cannot decode image: {exc}')

    if rgba.width <= 0 or rgba.height <= 0:
        return ImageOutcome(error='image has no pixels')

    if opacity < 1.0:
        alpha = rgba.getchannel('A').point(lambda a: int(round(a * opacity)))
        rgba.putalpha(alpha)

    out = io.BytesIO()
    rgba.save(out, format='PNG')
    return ImageOutcome(image=PreparedImage(stream=out.getvalue(), width=rgba.width, height=rgba.height))
