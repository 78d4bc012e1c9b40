"""Resolve ``<Include src="..."/>`` directives in Tabletop Simulator XML UI."""

from __future__ import annotations

import re
from pathlib import Path
from typing import List

from ..errors import MarkupIncludeError
from ..utils import read_text

INCLUDE_MARKER = "<Include src="

_INCLUDE_RE = re.compile(
    r"""<Include\s+src\s*=\s*(?P<quote>["'])(?P<src>[^"']+)(?P=quote)\s*(?:/>|>\s*</Include\s*>)"""
)


def has_includes(markup: str) -> bool:
    return INCLUDE_MARKER in markup


def resolve_includes(markup: str, source_dir: Path) -> str:
    """Return ``markup`` with every include directive replaced by file content."""

    return _expand(markup, Path(source_dir), [])


def _expand(markup: str, base_dir: Path, stack: List[Path]) -> str:
    def _replace(match: re.Match[str]) -> str:
        src = match.group("src").strip()
        target = _include_path(base_dir, src)
        if target in stack:
            chain = " -> ".join(str(path) for path in [*stack, target])
            raise MarkupIncludeError(f"Circular XML include: {chain}")
        if not target.is_file():
            raise MarkupIncludeError(f"XML include not found: {src} (expected {target})")
        body = _expand(read_text(target), target.parent, [*stack, target])
        return f"<!-- include {src} -->\n{body}\n<!-- end include {src} -->"

    return _INCLUDE_RE.sub(_replace, markup)


def _include_path(base_dir: Path, src: str) -> Path:
    path = base_dir / src
    if not path.suffix:
        path = path.with_name(path.name + ".xml")
    return path.resolve()


__all__ = ["INCLUDE_MARKER", "has_includes", "resolve_includes"]
