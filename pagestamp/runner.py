from __future__ import annotations

import base64
import logging
from dataclasses import dataclass, field

import httpx

from pagestamp.adapters.code_image import CodeImageConfig, generate_code_image
from pagestamp.adapters.image_fetch import FetchConfig, WatermarkOutcome, fetch_watermark
from pagestamp.adapters.renderer import HtmlRenderer, RendererConfig
from pagestamp.annotate.pipeline import AnnotatedDocument, AnnotationPipeline
from pagestamp.annotate.policy import AnnotationPolicy
from pagestamp.config import Settings
from pagestamp.errors import RequestError
from pagestamp.types import AnnotationJob, JobRequest, JobResult


logger = logging.getLogger(__name__)


@dataclass
class JobRunner:
    """Wires renderer output into the annotation pipeline, one request at a time."""

    policy: AnnotationPolicy = field(default_factory=AnnotationPolicy)
    renderer: HtmlRenderer = field(default_factory=HtmlRenderer)
    fetch_cfg: FetchConfig = field(default_factory=FetchConfig)
    code_cfg: CodeImageConfig = field(default_factory=CodeImageConfig)
    max_html_bytes: int = 5 * 1024 * 1024
    http_client: httpx.Client | None = None

    @classmethod
    def from_settings(cls, settings: Settings, *, http_client: httpx.Client | None = None) -> 'JobRunner':
        return cls(
            policy=settings.annotation_policy(),
            renderer=HtmlRenderer(settings.renderer_config()),
            fetch_cfg=settings.fetch_config(),
            code_cfg=settings.code_image_config(),
            max_html_bytes=settings.max_html_bytes,
            http_client=http_client,
        )

    def acquire_watermark(self, url: str | None) -> WatermarkOutcome:
        if not url:
            return WatermarkOutcome()
        return fetch_watermark(url, self.fetch_cfg, client=self.http_client)

    def stamp(
        self,
        document_bytes: bytes,
        *,
        code: str,
        caption: str,
        watermark: WatermarkOutcome | None = None,
    ) -> AnnotatedDocument:
        warnings: list[str] = []
        watermark_image = None
        if watermark is not None:
            if watermark.ok:
                watermark_image = watermark.image
            elif watermark.error is not None:
                warnings.append(watermark.error.message)

        job = AnnotationJob(
            document_bytes=document_bytes,
            code_image=generate_code_image(code, self.code_cfg),
            caption=caption,
            watermark_image=watermark_image,
        )
        result = AnnotationPipeline(self.policy).run(job)
        result.warnings[:0] = warnings
        return result

    def run(self, request: JobRequest) -> JobResult:
        html_size = len(request.html.encode('utf-8'))
        if html_size > self.max_html_bytes:
            raise RequestError(f'HTML too large: {html_size} bytes, max allowed {self.max_html_bytes} bytes')

        pdf_bytes = self.renderer.render(request.html)
        annotated = self.stamp(
            pdf_bytes,
            code=request.code,
            caption=request.code_name,
            watermark=self.acquire_watermark(request.watermark_url),
        )
        logger.info(
            'Job finished: pages=%s watermark=%s size=%s bytes',
            annotated.page_count,
            annotated.watermark_applied,
            len(annotated.pdf_bytes),
        )
        return JobResult(
            success=True,
            pdf_base64=base64.b64encode(annotated.pdf_bytes).decode('ascii'),
            pages=annotated.page_count,
            watermark_applied=annotated.watermark_applied,
            warnings=annotated.warnings,
        )


def run_job(request: JobRequest, settings: Settings) -> JobResult:
    return JobRunner.from_settings(settings).run(request)
