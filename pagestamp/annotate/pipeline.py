from __future__ import annotations

import logging
from dataclasses import dataclass, field

import pymupdf as fitz

from pagestamp.annotate.images import prepare_image
from pagestamp.annotate.page_annotator import (
    CAPTION_FONT_NAME,
    AnnotationResources,
    EmbeddedImages,
    annotate_page,
    compute_placement,
    measure_with_font,
    page_geometry,
)
from pagestamp.annotate.policy import AnnotationPolicy
from pagestamp.errors import CodeImageError, LoadError, SerializeError
from pagestamp.types import AnnotationJob


logger = logging.getLogger(__name__)


@dataclass
class AnnotatedDocument:
    pdf_bytes: bytes
    page_count: int
    watermark_applied: bool = False
    warnings: list[str] = field(default_factory=list)


def _open_document(document_bytes: bytes):
    if not document_bytes:
        raise LoadError('document buffer is empty')
    try:
        doc = fitz.open(stream=document_bytes, filetype='pdf')
    except Exception as exc:
        raise LoadError(f'cannot load PDF: {exc}') from exc

    if doc.is_encrypted:
        authenticated = False
        try:
            authenticated = bool(doc.authenticate(''))
        except Exception:
            authenticated = False
        if not authenticated:
            doc.close()
            raise LoadError('PDF is encrypted')

    if doc.page_count < 1:
        doc.close()
        raise LoadError('PDF has no pages')
    return doc


class AnnotationPipeline:
    """Stamps every page of a rendered PDF with watermark, code image and caption."""

    def __init__(self, policy: AnnotationPolicy | None = None):
        self.policy = policy or AnnotationPolicy()

    def build_resources(self, job: AnnotationJob, warnings: list[str]) -> AnnotationResources:
        code = prepare_image(job.code_image, opacity=self.policy.code_opacity)
        if not code.ok:
            raise CodeImageError(f'code image unusable: {code.error}')

        watermark = None
        if job.watermark_image:
            prepared = prepare_image(job.watermark_image, opacity=self.policy.watermark_opacity)
            if prepared.ok:
                watermark = prepared.image
            else:
                message = f'watermark skipped: {prepared.error}'
                logger.warning(message)
                warnings.append(message)

        return AnnotationResources(
            font=fitz.Font(CAPTION_FONT_NAME),
            code_image=code.image,
            watermark=watermark,
            font_name=CAPTION_FONT_NAME,
        )

    def run(self, job: AnnotationJob) -> AnnotatedDocument:
        warnings: list[str] = []
        resources = self.build_resources(job, warnings)
        measure = measure_with_font(resources.font)
        watermark_size = None
        if resources.watermark is not None:
            watermark_size = (float(resources.watermark.width), float(resources.watermark.height))

        doc = _open_document(job.document_bytes)
        try:
            page_count = doc.page_count
            embedded = EmbeddedImages()
            for page in doc:
                placement = compute_placement(
                    page_geometry(page),
                    self.policy,
                    job.caption,
                    measure,
                    watermark_size=watermark_size,
                )
                annotate_page(page, placement, resources, embedded)

            try:
                pdf_bytes = doc.tobytes(garbage=3, deflate=True)
            except Exception as exc:
                raise SerializeError(f'cannot serialize annotated PDF: {exc}') from exc
        finally:
            doc.close()

        logger.info(
            'Annotated %s page(s), watermark=%s, caption=%r',
            page_count,
            resources.watermark is not None,
            job.caption,
        )
        return AnnotatedDocument(
            pdf_bytes=pdf_bytes,
            page_count=page_count,
            watermark_applied=resources.watermark is not None,
            warnings=warnings,
        )


def annotate_document(
    document_bytes: bytes,
    code_image: bytes,
    caption: str,
    watermark_image: bytes | None = None,
    *,
    policy: AnnotationPolicy | None = None,
) -> AnnotatedDocument:
    job = AnnotationJob(
        document_bytes=document_bytes,
        code_image=code_image,
        caption=caption,
        watermark_image=watermark_image,
    )
    return AnnotationPipeline(policy).run(job)
