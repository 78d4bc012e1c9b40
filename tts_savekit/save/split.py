"""Decompose a save document into per-object files plus a manifest."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, List, Mapping, Optional

from ..errors import StructuralError
from ..schemas.manifest import ManifestEntry, dump_manifest_payload
from ..utils import write_json, write_text
from .naming import sanitize_filename
from .reconstruct import CHILDREN_KEY, sibling_path

logger = logging.getLogger(__name__)

GLOBAL_DIR = "Global"
CONTAINED_DIR = "Contained"
MANIFEST_FILE = "manifest.json"
BASE_FILE = "base.json"
GLOBAL_FILES = {
    "LuaScript": "Global.lua",
    "LuaScriptState": "Global.state.txt",
    "XmlUI": "UI.xml",
}
SCRIPT_FILES = {
    "LuaScript": ".lua",
    "LuaScriptState": ".state.txt",
}


@dataclass(slots=True)
class SplitResult:
    output_dir: Path
    entries: List[ManifestEntry] = field(default_factory=list)
    globals_extracted: List[str] = field(default_factory=list)


def top_level_filename(obj: Mapping[str, Any]) -> str:
    guid = sanitize_filename(obj.get("GUID") or "noguid")
    if obj.get("Nickname") and obj.get("Name"):
        return f"{sanitize_filename(obj['Nickname'])}.{sanitize_filename(obj['Name'])}_{guid}.json"
    return f"{sanitize_filename(obj.get('Name') or 'Object')}_{guid}.json"


def nested_filename(obj: Mapping[str, Any]) -> str:
    name = sanitize_filename(obj.get("Name") or "Object")
    guid = sanitize_filename(obj.get("GUID") or "noguid")
    return f"{name}_{guid}.json"


def container_dir(obj: Mapping[str, Any]) -> PurePosixPath:
    label = sanitize_filename(obj.get("Nickname") or obj.get("Name") or "Object")
    guid = sanitize_filename(obj.get("GUID") or "noguid")
    return PurePosixPath(CONTAINED_DIR, f"{label}_{guid}")


def clean_directory(path: Path) -> None:
    """Remove everything inside ``path`` while keeping the directory itself."""

    path.mkdir(parents=True, exist_ok=True)
    for child in path.iterdir():
        if child.is_dir() and not child.is_symlink():
            shutil.rmtree(child)
        else:
            child.unlink()


class SaveSplitter:
    def __init__(self, output_dir: Path) -> None:
        self.output_dir = Path(output_dir)

    def split(self, save: Mapping[str, Any]) -> SplitResult:
        objects = save.get("ObjectStates")
        if not isinstance(objects, list):
            raise StructuralError("Save file does not contain ObjectStates array")

        logger.info("Cleaning output folder: %s", self.output_dir)
        clean_directory(self.output_dir)

        result = SplitResult(output_dir=self.output_dir)
        for order, obj in enumerate(objects):
            self._write_object(obj, None, None, order, result)

        global_dir = self.output_dir / GLOBAL_DIR
        global_dir.mkdir(parents=True, exist_ok=True)
        for key, filename in GLOBAL_FILES.items():
            if _has_text(save.get(key)):
                write_text(global_dir / filename, save[key])
                result.globals_extracted.append(key)

        base = {key: value for key, value in save.items() if key != "ObjectStates" and key not in GLOBAL_FILES}
        write_json(base, self.output_dir / BASE_FILE)
        write_json(dump_manifest_payload(result.entries), self.output_dir / MANIFEST_FILE)
        logger.info("Split %d objects into %s", len(result.entries), self.output_dir)
        return result

    def _write_object(
        self,
        obj: Mapping[str, Any],
        relative_dir: Optional[PurePosixPath],
        parent_guid: Optional[str],
        order: int,
        result: SplitResult,
    ) -> None:
        if relative_dir is None:
            relative_file = PurePosixPath(top_level_filename(obj))
        else:
            relative_file = relative_dir / nested_filename(obj)
        json_path = self.output_dir / relative_file

        extracted = {CHILDREN_KEY}
        for key, suffix in SCRIPT_FILES.items():
            if _has_text(obj.get(key)):
                write_text(sibling_path(json_path, suffix), obj[key])
                extracted.add(key)

        # Blank script fields stay in the record.
        record = {key: value for key, value in obj.items() if key not in extracted}
        write_json(record, json_path)

        result.entries.append(
            ManifestEntry(
                type=obj.get("Name") or "Object",
                name=obj.get("Name") or None,
                nickname=obj.get("Nickname") or None,
                guid=obj.get("GUID") or None,
                file=relative_file.as_posix(),
                parent=parent_guid,
                order=order,
            )
        )

        children = obj.get(CHILDREN_KEY)
        if isinstance(children, list) and children:
            child_dir = container_dir(obj)
            for child_order, child in enumerate(children):
                self._write_object(child, child_dir, obj.get("GUID") or None, child_order, result)


def split_save(save: Mapping[str, Any], output_dir: Path) -> SplitResult:
    return SaveSplitter(output_dir).split(save)


def _has_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


__all__ = [
    "BASE_FILE",
    "GLOBAL_DIR",
    "MANIFEST_FILE",
    "SaveSplitter",
    "SplitResult",
    "clean_directory",
    "container_dir",
    "nested_filename",
    "split_save",
    "top_level_filename",
]
