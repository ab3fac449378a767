from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Anchor(str, Enum):
    top_right = 'top-right'
    bottom_right = 'bottom-right'


@dataclass(frozen=True)
class AnnotationPolicy:
    """Stamping rules applied identically to every page of a document.

    All lengths are PDF points. Ranges are checked on construction so a bad
    deployment config fails at startup rather than half way through a job.
    """

    code_size: float = 40.0
    font_size: float = 6.0
    margin: float = 10.0
    line_gap: float = 1.0
    watermark_opacity: float = 0.1
    code_opacity: float = 0.7
    caption_opacity: float | None = None
    bounding_fraction: float = 0.6
    anchor: Anchor = Anchor.top_right

    def __post_init__(self) -> None:
        object.__setattr__(self, 'anchor', Anchor(self.anchor))
        if self.caption_opacity is None:
            object.__setattr__(self, 'caption_opacity', self.code_opacity)

        if self.code_size <= 0:
            raise ValueError(f'code_size must be positive, got {self.code_size}')
        if self.font_size <= 0:
            raise ValueError(f'font_size must be positive, got {self.font_size}')
        if not 5.0 <= self.margin <= 10.0:
            raise ValueError(f'margin must be within [5, 10], got {self.margin}')
        if not 1.0 <= self.line_gap <= 2.0:
            raise ValueError(f'line_gap must be within [1, 2], got {self.line_gap}')
        if not 0.5 <= self.code_opacity <= 0.7:
            raise ValueError(f'code_opacity must be within [0.5, 0.7], got {self.code_opacity}')
        if not 0.5 <= self.bounding_fraction <= 0.6:
            raise ValueError(f'bounding_fraction must be within [0.5, 0.6], got {self.bounding_fraction}')
        for name in ('watermark_opacity', 'caption_opacity'):
            value = getattr(self, name)
            if not 0.0 < value <= 1.0:
                raise ValueError(f'{name} must be within (0, 1], got {value}')

    @property
    def line_pitch(self) -> float:
        return self.font_size + self.line_gap
