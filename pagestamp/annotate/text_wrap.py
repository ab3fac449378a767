from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

MeasureFn = Callable[[str, float], float]


@dataclass(frozen=True)
class WrapConfig:
    max_width: float
    measure: MeasureFn
    font_size: float


def wrap_text(text: str, max_width: float, measure: MeasureFn, font_size: float) -> list[str]:
    """Greedy word wrap of ``text`` into lines no wider than ``max_width``.

    A single word wider than ``max_width`` is kept whole on its own line;
    words are never split.
    """
    lines: list[str] = []
    current = ''
    for word in str(text or '').split():
        candidate = f'{current} {word}' if current else word
        if measure(candidate, font_size) <= max_width:
            current = candidate
            continue
        if current:
            lines.append(current)
        current = word
    if current:
        lines.append(current)
    return lines


def wrap_with(text: str, cfg: WrapConfig) -> list[str]:
    return wrap_text(text, cfg.max_width, cfg.measure, cfg.font_size)
