"""Shared file helpers used by the split and merge tooling."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from .errors import StructuralError


def read_text(path: Path) -> str:
    """Read UTF-8 text without newline translation."""

    with path.open("r", encoding="utf-8", newline="") as handle:
        return handle.read()


def read_text_if_exists(path: Path) -> Optional[str]:
    if not path.is_file():
        return None
    return read_text(path)


def read_json(path: Path) -> Any:
    """Load a JSON document, raising ``StructuralError`` when it is invalid."""

    try:
        return json.loads(read_text(path))
    except FileNotFoundError as exc:
        raise StructuralError(f"File not found: {path}", path=path) from exc
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise StructuralError(f"Invalid JSON: {path} ({exc})", path=path) from exc


def dump_json(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False)


def write_json(payload: Any, path: Path) -> None:
    """Write JSON payload to disk with canonical formatting."""

    write_text(path, dump_json(payload))


def write_text(path: Path, content: str, *, newline: Optional[str] = "") -> None:
    """Write text to file ensuring parent directories exist."""

    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline=newline) as handle:
        handle.write(content)
