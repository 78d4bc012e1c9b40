"""Cross-platform file name helpers for split objects and build outputs."""

from __future__ import annotations

import re
import unicodedata
from datetime import datetime, timezone
from typing import Optional

MAX_NAME_LENGTH = 50

_CONTROL_RE = re.compile(r"[\u0000-\u001F\u007F]")
_WHITESPACE_RE = re.compile(r"\s+")
_UNSAFE_RE = re.compile(r"[^\w\-.]")
_UNDERSCORES_RE = re.compile(r"_+")
_DOTS_RE = re.compile(r"\.{2,}")
_EDGE_RE = re.compile(r"^[\s._]+|[\s._]+$")
_RESERVED_RE = re.compile(r"^(con|prn|aux|nul|com[1-9]|lpt[1-9])$", re.IGNORECASE)
_DEV_VERSION_RE = re.compile(r"^v?dev$", re.IGNORECASE)


def sanitize_filename(value: object, fallback: str = "unnamed") -> str:
    """Return a Unicode-safe file name component."""

    text = unicodedata.normalize("NFC", "" if value is None else str(value))
    text = _CONTROL_RE.sub("", text)
    text = _WHITESPACE_RE.sub("_", text)
    text = _UNSAFE_RE.sub("_", text)
    text = _UNDERSCORES_RE.sub("_", text)
    text = _DOTS_RE.sub(".", text)
    text = _EDGE_RE.sub("", text)
    if not text or text in {".", ".."}:
        text = fallback
    if _RESERVED_RE.match(text):
        text = "_" + text
    return text[:MAX_NAME_LENGTH] or fallback


def version_tag(version: str) -> str:
    tag = re.sub(r"^v+", "", str(version).strip(), flags=re.IGNORECASE)
    return re.sub(r"[^A-Za-z0-9._-]", "_", sanitize_filename(tag, "dev"))


def is_dev_version(version: str) -> bool:
    return bool(_DEV_VERSION_RE.match(str(version).strip()))


def archive_timestamp(now: Optional[datetime] = None) -> str:
    moment = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H-%M-%S")


__all__ = [
    "MAX_NAME_LENGTH",
    "archive_timestamp",
    "is_dev_version",
    "sanitize_filename",
    "version_tag",
]
