from __future__ import annotations

from pathlib import Path


def write_bytes_atomic(path: Path, content: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + '.tmp')
    tmp.write_bytes(content)
    tmp.replace(path)


def read_input_bytes(path: Path, *, max_bytes: int | None = None) -> bytes:
    if not path.exists() or not path.is_file():
        raise FileNotFoundError(f'file not found: {path}')
    size = int(path.stat().st_size)
    if max_bytes is not None and size > max_bytes:
        raise ValueError(f'file too large: {size} bytes, max allowed {max_bytes} bytes')
    return path.read_bytes()
