from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass

from pagestamp.adapters.html_prep import DEFAULT_PAGE_CSS, inject_print_css
from pagestamp.errors import RenderError


logger = logging.getLogger(__name__)


@dataclass
class RendererConfig:
    timeout_seconds: float = 30.0
    page_css: str = DEFAULT_PAGE_CSS
    base_url: str | None = None


def _write_pdf(html: str, base_url: str | None) -> bytes:
    from weasyprint import HTML

    return HTML(string=html, base_url=base_url).write_pdf()


class HtmlRenderer:
    """HTML to paginated PDF via WeasyPrint, bounded by a timeout."""

    def __init__(self, cfg: RendererConfig | None = None):
        self.cfg = cfg or RendererConfig()

    def prepare(self, html: str) -> str:
        return inject_print_css(html, self.cfg.page_css)

    def render(self, html: str) -> bytes:
        document = self.prepare(html)
        # render() returns at the timeout, but the worker thread runs until
        # WeasyPrint finishes; interpreter exit still joins it.
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='pagestamp-render')
        future = executor.submit(_write_pdf, document, self.cfg.base_url)
        try:
            pdf_bytes = future.result(timeout=self.cfg.timeout_seconds)
        except FutureTimeout as exc:
            future.cancel()
            raise RenderError(f'rendering timed out after {self.cfg.timeout_seconds:g}s') from exc
        except Exception as exc:
            logger.error('Failed to render PDF: %s', exc, exc_info=True)
            raise RenderError(f'rendering failed: {exc}') from exc
        finally:
            executor.shutdown(wait=False)

        if not pdf_bytes:
            raise RenderError('renderer returned an empty document')
        logger.info('Rendered PDF: %s bytes', len(pdf_bytes))
        return pdf_bytes
