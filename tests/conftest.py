from __future__ import annotations

import io

import pymupdf as fitz
import pytest
from PIL import Image

from pagestamp.adapters.code_image import generate_code_image
from pagestamp.annotate.policy import AnnotationPolicy


A4 = (595.0, 842.0)
LETTER = (612.0, 792.0)


def make_pdf(sizes: list[tuple[float, float]]) -> bytes:
    doc = fitz.open()
    for index, (width, height) in enumerate(sizes, start=1):
        page = doc.new_page(width=width, height=height)
        page.insert_text((72, 100), f'Body text of page {index}', fontsize=12, fontname='helv')
    data = doc.tobytes()
    doc.close()
    return data


def make_png(width: int = 300, height: int = 150, color=(200, 30, 30, 255)) -> bytes:
    img = Image.new('RGBA', (width, height), color)
    buf = io.BytesIO()
    img.save(buf, format='PNG')
    return buf.getvalue()


def char_measure(text: str, size: float) -> float:
    """Fixed-pitch stand-in for font metrics: half an em per character."""
    return len(text) * size * 0.5


@pytest.fixture
def policy() -> AnnotationPolicy:
    return AnnotationPolicy()


@pytest.fixture
def one_page_pdf() -> bytes:
    return make_pdf([A4])


@pytest.fixture
def three_page_pdf() -> bytes:
    return make_pdf([A4, LETTER, (300.0, 400.0)])


@pytest.fixture
def watermark_png() -> bytes:
    return make_png()


@pytest.fixture
def code_png() -> bytes:
    return generate_code_image('https://example.com')
