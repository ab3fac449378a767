from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pagestamp.annotate.images import PreparedImage
from pagestamp.annotate.policy import Anchor, AnnotationPolicy
from pagestamp.annotate.text_wrap import MeasureFn, wrap_text

CAPTION_FONT_NAME = 'helv'
CAPTION_COLOR = (0.0, 0.0, 0.0)


@dataclass(frozen=True)
class PageGeometry:
    width: float
    height: float


@dataclass(frozen=True)
class DrawRect:
    x: float
    y: float
    width: float
    height: float
    opacity: float


@dataclass(frozen=True)
class CaptionLine:
    text: str
    x: float
    y: float
    width: float


@dataclass(frozen=True)
class PlacementResult:
    """Where the stamp layers go on one page.

    Coordinates are PDF user space: origin at the bottom-left corner, y up.
    Caption ``y`` values are text baselines.
    """

    code: DrawRect
    watermark: DrawRect | None = None
    caption_lines: tuple[CaptionLine, ...] = ()
    caption_opacity: float = 1.0
    font_size: float = 6.0


@dataclass(frozen=True)
class AnnotationResources:
    """Built once per document, read by every page."""

    font: Any
    code_image: PreparedImage
    watermark: PreparedImage | None = None
    font_name: str = CAPTION_FONT_NAME


@dataclass
class EmbeddedImages:
    """Image xrefs of a document, filled on first use so later pages reuse them."""

    xrefs: dict[str, int] = field(default_factory=dict)


def measure_with_font(font: Any) -> MeasureFn:
    def measure(text: str, size: float) -> float:
        return float(font.text_length(text, fontsize=size))

    return measure


def place_watermark(
    geometry: PageGeometry,
    image_size: tuple[float, float],
    policy: AnnotationPolicy,
) -> DrawRect:
    image_width, image_height = image_size
    scale = min(
        geometry.width * policy.bounding_fraction / image_width,
        geometry.height * policy.bounding_fraction / image_height,
    )
    scaled_width = image_width * scale
    scaled_height = image_height * scale
    return DrawRect(
        x=(geometry.width - scaled_width) / 2,
        y=(geometry.height - scaled_height) / 2,
        width=scaled_width,
        height=scaled_height,
        opacity=policy.watermark_opacity,
    )


def place_code(geometry: PageGeometry, policy: AnnotationPolicy) -> DrawRect:
    side = policy.code_size
    x = geometry.width - side - policy.margin
    if policy.anchor == Anchor.top_right:
        y = geometry.height - side - policy.margin
    else:
        y = policy.margin
    return DrawRect(x=x, y=y, width=side, height=side, opacity=policy.code_opacity)


def place_caption(
    code: DrawRect,
    caption: str,
    policy: AnnotationPolicy,
    measure: MeasureFn,
) -> tuple[CaptionLine, ...]:
    lines = wrap_text(caption, code.width, measure, policy.font_size)
    last = len(lines) - 1
    placed: list[CaptionLine] = []
    for index, line in enumerate(lines):
        line_width = measure(line, policy.font_size)
        x = code.x + (code.width - line_width) / 2
        if policy.anchor == Anchor.top_right:
            # Below the code image, growing downward.
            y = code.y - (index + 1) * policy.line_pitch
        else:
            # Above the code image, growing upward; the last line touches the image.
            y = code.y + code.height + policy.line_gap + (last - index) * policy.line_pitch
        placed.append(CaptionLine(text=line, x=x, y=y, width=line_width))
    return tuple(placed)


def compute_placement(
    geometry: PageGeometry,
    policy: AnnotationPolicy,
    caption: str,
    measure: MeasureFn,
    watermark_size: tuple[float, float] | None = None,
) -> PlacementResult:
    watermark = None
    if watermark_size is not None:
        watermark = place_watermark(geometry, watermark_size, policy)
    code = place_code(geometry, policy)
    return PlacementResult(
        code=code,
        watermark=watermark,
        caption_lines=place_caption(code, caption, policy, measure),
        caption_opacity=float(policy.caption_opacity),
        font_size=policy.font_size,
    )


def page_geometry(page) -> PageGeometry:
    """Visual page size, as a viewer shows it after ``/Rotate`` is applied."""
    rect = page.rect
    return PageGeometry(width=float(rect.width), height=float(rect.height))


def _to_page_rect(page, rect: DrawRect):
    import pymupdf as fitz

    page_rect = page.rect
    x0 = page_rect.x0 + rect.x
    y1 = page_rect.y0 + page_rect.height - rect.y
    visual = fitz.Rect(x0, y1 - rect.height, x0 + rect.width, y1)
    # Draw calls take unrotated page coordinates.
    return visual * page.derotation_matrix


def _to_page_point(page, x: float, y: float):
    import pymupdf as fitz

    page_rect = page.rect
    visual = fitz.Point(page_rect.x0 + x, page_rect.y0 + page_rect.height - y)
    return visual * page.derotation_matrix


def _draw_image(
    page,
    rect: DrawRect,
    image: PreparedImage,
    *,
    key: str,
    embedded: EmbeddedImages,
) -> None:
    target = _to_page_rect(page, rect)
    xref = embedded.xrefs.get(key, 0)
    if xref:
        page.insert_image(target, xref=xref, keep_proportion=False, rotate=page.rotation, overlay=True)
        return
    embedded.xrefs[key] = page.insert_image(
        target,
        stream=image.stream,
        keep_proportion=False,
        rotate=page.rotation,
        overlay=True,
    )


def annotate_page(
    page,
    placement: PlacementResult,
    resources: AnnotationResources,
    embedded: EmbeddedImages,
) -> None:
    """Draw watermark, code image and caption on top of the page content.

    Layers are drawn upright in the page's visual frame, so rotated pages
    look the same as unrotated ones.
    """
    if placement.watermark is not None and resources.watermark is not None:
        _draw_image(page, placement.watermark, resources.watermark, key='watermark', embedded=embedded)

    _draw_image(page, placement.code, resources.code_image, key='code', embedded=embedded)

    for line in placement.caption_lines:
        page.insert_text(
            _to_page_point(page, line.x, line.y),
            line.text,
            fontsize=placement.font_size,
            fontname=resources.font_name,
            color=CAPTION_COLOR,
            fill_opacity=placement.caption_opacity,
            rotate=page.rotation,
            overlay=True,
        )
