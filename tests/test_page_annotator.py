from __future__ import annotations

import pytest

from conftest import char_measure
from pagestamp.annotate.page_annotator import (
    PageGeometry,
    compute_placement,
    place_code,
    place_watermark,
)
from pagestamp.annotate.policy import Anchor, AnnotationPolicy


PAGE_SIZES = [
    (595.0, 842.0),
    (842.0, 595.0),
    (612.0, 792.0),
    (300.0, 400.0),
    (2000.0, 100.0),
    (30.0, 30.0),
]
IMAGE_SIZES = [(300.0, 150.0), (100.0, 400.0), (64.0, 64.0), (5000.0, 10.0)]


@pytest.mark.parametrize('page_size', PAGE_SIZES)
@pytest.mark.parametrize('image_size', IMAGE_SIZES)
@pytest.mark.parametrize('fraction', [0.5, 0.6])
def test_watermark_fits_fraction_centered_and_keeps_aspect(page_size, image_size, fraction):
    geometry = PageGeometry(*page_size)
    policy = AnnotationPolicy(bounding_fraction=fraction)

    rect = place_watermark(geometry, image_size, policy)

    eps = 1e-6
    assert rect.width <= geometry.width * fraction + eps
    assert rect.height <= geometry.height * fraction + eps
    # One side touches the bounding box.
    assert (
        rect.width == pytest.approx(geometry.width * fraction)
        or rect.height == pytest.approx(geometry.height * fraction)
    )
    assert rect.x + rect.width / 2 == pytest.approx(geometry.width / 2)
    assert rect.y + rect.height / 2 == pytest.approx(geometry.height / 2)
    assert rect.width / rect.height == pytest.approx(image_size[0] / image_size[1])
    assert rect.opacity == 0.1


def test_code_square_is_same_size_and_margin_on_every_page(policy):
    rects = [place_code(PageGeometry(w, h), policy) for w, h in PAGE_SIZES]

    for (width, height), rect in zip(PAGE_SIZES, rects):
        assert (rect.width, rect.height) == (40.0, 40.0)
        assert width - (rect.x + rect.width) == pytest.approx(10.0)
        assert height - (rect.y + rect.height) == pytest.approx(10.0)
        assert rect.opacity == 0.7


def test_bottom_anchor_sits_above_bottom_margin():
    policy = AnnotationPolicy(anchor=Anchor.bottom_right, margin=5)
    rect = place_code(PageGeometry(595, 842), policy)
    assert (rect.x, rect.y) == (595 - 40 - 5, 5)


def test_tiny_page_overflows_without_error(policy):
    rect = place_code(PageGeometry(30, 30), policy)
    assert rect.x < 0 and rect.y < 0


def test_caption_is_centered_under_code_and_steps_down(policy):
    geometry = PageGeometry(595, 842)
    placement = compute_placement(geometry, policy, 'aaaa bbbb cccc dddd', char_measure)

    code = placement.code
    assert [line.text for line in placement.caption_lines] == ['aaaa bbbb', 'cccc dddd']
    for index, line in enumerate(placement.caption_lines):
        assert line.x == pytest.approx(code.x + (code.width - line.width) / 2)
        assert line.y == pytest.approx(code.y - (index + 1) * policy.line_pitch)
        assert line.y < code.y
    assert placement.caption_opacity == policy.code_opacity
    assert placement.font_size == 6


def test_caption_above_code_for_bottom_anchor_reads_top_to_bottom():
    policy = AnnotationPolicy(anchor=Anchor.bottom_right)
    placement = compute_placement(PageGeometry(595, 842), policy, 'aaaa bbbb cccc dddd', char_measure)

    code = placement.code
    first, second = placement.caption_lines
    assert (first.text, second.text) == ('aaaa bbbb', 'cccc dddd')
    # The last line sits next to the image, earlier lines above it.
    assert second.y == pytest.approx(code.y + code.height + policy.line_gap)
    assert first.y == pytest.approx(second.y + policy.line_pitch)


def test_caption_lines_never_wider_than_code(policy):
    placement = compute_placement(
        PageGeometry(595, 842),
        policy,
        'one two three four five six seven eight nine ten',
        char_measure,
    )
    for line in placement.caption_lines:
        assert line.width <= placement.code.width


def test_oversized_caption_token_is_one_line(policy):
    token = 'Z' * 60
    placement = compute_placement(PageGeometry(595, 842), policy, token, char_measure)

    assert [line.text for line in placement.caption_lines] == [token]
    assert placement.caption_lines[0].width > placement.code.width


def test_no_watermark_without_image_size(policy):
    placement = compute_placement(PageGeometry(595, 842), policy, 'Sample Code', char_measure)
    assert placement.watermark is None


def test_same_policy_yields_same_relative_layout_on_different_pages(policy):
    a = compute_placement(PageGeometry(595, 842), policy, 'Sample Code', char_measure, (300, 150))
    b = compute_placement(PageGeometry(300, 400), policy, 'Sample Code', char_measure, (300, 150))

    assert a.watermark.opacity == b.watermark.opacity
    assert a.code.opacity == b.code.opacity
    assert a.watermark.width != b.watermark.width
    assert [line.text for line in a.caption_lines] == [line.text for line in b.caption_lines]


@pytest.mark.parametrize(
    'kwargs',
    [
        {'code_opacity': 0.9},
        {'bounding_fraction': 0.8},
        {'margin': 20},
        {'line_gap': 3},
        {'watermark_opacity': 0},
        {'code_size': 0},
    ],
)
def test_policy_rejects_out_of_range_values(kwargs):
    with pytest.raises(ValueError):
        AnnotationPolicy(**kwargs)


def test_policy_caption_opacity_follows_code_opacity():
    assert AnnotationPolicy(code_opacity=0.5).caption_opacity == 0.5
    assert AnnotationPolicy(anchor='bottom-right').anchor is Anchor.bottom_right
