from __future__ import annotations

import io
import logging
from dataclasses import dataclass

import httpx
from PIL import Image, UnidentifiedImageError

from pagestamp.errors import StampError, WatermarkDecodeError, WatermarkFetchError


logger = logging.getLogger(__name__)


@dataclass
class FetchConfig:
    timeout_seconds: float = 15.0
    max_bytes: int = 10 * 1024 * 1024
    user_agent: str = 'pagestamp/0.1'


@dataclass(frozen=True)
class WatermarkOutcome:
    """Result of acquiring a watermark; ``error`` set means no watermark layer."""

    image: bytes | None = None
    error: StampError | None = None
    source: str | None = None

    @property
    def ok(self) -> bool:
        return self.image is not None and self.error is None


def decode_watermark(data: bytes, *, source: str | None = None) -> WatermarkOutcome:
    if not data:
        return WatermarkOutcome(error=WatermarkDecodeError('watermark image is empty'), source=source)
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as exc:
        return WatermarkOutcome(
            error=WatermarkDecodeError(f'watermark image cannot be decoded: {exc}'),
            source=source,
        )
    return WatermarkOutcome(image=data, source=source)


def _too_large(size: int, limit: int) -> WatermarkFetchError:
    return WatermarkFetchError(f'watermark image too large: {size} bytes, max {limit}')


def _download(http: httpx.Client, url: str, headers: dict[str, str], max_bytes: int) -> bytes:
    with http.stream('GET', url, headers=headers) as response:
        response.raise_for_status()
        declared = response.headers.get('Content-Length', '')
        if declared.isdigit() and int(declared) > max_bytes:
            raise _too_large(int(declared), max_bytes)
        chunks: list[bytes] = []
        received = 0
        for chunk in response.iter_bytes():
            received += len(chunk)
            if received > max_bytes:
                raise _too_large(received, max_bytes)
            chunks.append(chunk)
    return b''.join(chunks)


def fetch_watermark(
    url: str,
    cfg: FetchConfig | None = None,
    *,
    client: httpx.Client | None = None,
) -> WatermarkOutcome:
    cfg = cfg or FetchConfig()
    headers = {'User-Agent': cfg.user_agent}
    owns_client = client is None
    http = client or httpx.Client(timeout=cfg.timeout_seconds, follow_redirects=True)
    error: StampError | None = None
    try:
        data = _download(http, url, headers, cfg.max_bytes)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        error = WatermarkFetchError(f'watermark fetch failed ({type(exc).__name__}): {exc}')
    except WatermarkFetchError as exc:
        error = exc
    finally:
        if owns_client:
            http.close()

    if error is not None:
        logger.warning('Failed to load watermark image from %s: %s', url, error)
        return WatermarkOutcome(error=error, source=url)

    outcome = decode_watermark(data, source=url)
    if not outcome.ok:
        logger.warning('Failed to load watermark image from %s: %s', url, outcome.error)
    return outcome
