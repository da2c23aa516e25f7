from __future__ import annotations

from pathlib import Path
from typing import Protocol


class _SupportsPath(Protocol):
    """Protocol for path-like objects accepted by Path."""

    def __fspath__(self) -> str:  # pragma: no cover - runtime protocol hook
        ...


StrPath = str | Path | _SupportsPath


def read_text(path: StrPath, errors: str = "strict") -> str:
    return Path(path).read_text(encoding="utf-8", errors=errors)


def write_text(path: StrPath, data: str) -> None:
    Path(path).write_text(data, encoding="utf-8")


def with_suffix(path: StrPath, suffix: str) -> Path:
    """Replace the suffix of ``path``, or append it when there is none."""

    p = Path(path)
    if p.suffix:
        return p.with_suffix(suffix)
    return p.with_name(p.name + suffix)
