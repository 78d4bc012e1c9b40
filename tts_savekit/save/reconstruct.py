"""Rebuild the nested ``ObjectStates`` tree from a flat split-save manifest."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..bundle.lua import LuaBundler
from ..errors import StructuralError
from ..schemas.manifest import ROOT_PARENT, ManifestEntry
from ..utils import read_json, read_text_if_exists

logger = logging.getLogger(__name__)

CHILDREN_KEY = "ContainedObjects"
SCRIPT_SUFFIXES = (".lua", ".ttslua")
STATE_SUFFIX = ".state.txt"
MARKUP_SUFFIX = ".xml"
MEMO_SUFFIX = ".memo.txt"


@dataclass(slots=True)
class ReconstructionResult:
    objects: List[Dict[str, Any]]
    groups: Dict[str, List[ManifestEntry]]
    warnings: List[str] = field(default_factory=list)


def sort_by_order(entries: Sequence[ManifestEntry]) -> List[ManifestEntry]:
    """Stable sort by ``order``; entries without one keep manifest order at the end."""

    return sorted(entries, key=lambda entry: entry.sort_key)


def group_by_parent(entries: Sequence[ManifestEntry]) -> Dict[str, List[ManifestEntry]]:
    groups: Dict[str, List[ManifestEntry]] = {}
    for entry in entries:
        groups.setdefault(entry.parent_key, []).append(entry)
    return {key: sort_by_order(members) for key, members in groups.items()}


def sibling_path(data_path: Path, suffix: str) -> Path:
    name = data_path.name
    stem = name[: -len(".json")] if name.lower().endswith(".json") else name
    return data_path.with_name(stem + suffix)


class ManifestReconstructor:
    """Assembles split objects back into the save's containment tree.

    Every data file is loaded and checked before any node is assembled, so a
    missing file or GUID mismatch aborts without a partial tree.
    """

    def __init__(self, src_dir: Path, bundler: LuaBundler) -> None:
        self.src_dir = Path(src_dir)
        self.bundler = bundler

    def data_path(self, entry: ManifestEntry) -> Path:
        return self.src_dir / entry.file

    def reconstruct(self, entries: Sequence[ManifestEntry]) -> ReconstructionResult:
        warnings = _duplicate_guid_warnings(entries)
        self._check_ownership(entries)
        records = self._load_records(entries)
        groups = group_by_parent(entries)
        for key, members in groups.items():
            logger.debug(
                "Manifest group %s: %d item(s) | order: %s",
                key,
                len(members),
                [member.order for member in members],
            )

        objects = [
            self._assemble(entry, records, groups, warnings)
            for entry in groups.get(ROOT_PARENT, [])
        ]
        return ReconstructionResult(objects=objects, groups=groups, warnings=warnings)

    def _check_ownership(self, entries: Sequence[ManifestEntry]) -> None:
        """Every non-root entry must hang from exactly one owner that leads back to the root."""

        owners: Dict[str, List[ManifestEntry]] = {}
        for entry in entries:
            if entry.guid:
                owners.setdefault(entry.guid, []).append(entry)

        parents: Dict[int, ManifestEntry] = {}
        for entry in entries:
            if entry.parent_key == ROOT_PARENT:
                continue
            candidates = owners.get(entry.parent_key, [])
            if not candidates:
                raise StructuralError(
                    f"Parent not found for entry: {entry.describe()} at {entry.file}; "
                    f"no manifest entry has GUID {entry.parent_key}",
                    path=self.data_path(entry),
                    guid=entry.guid,
                )
            if len(candidates) > 1:
                files = ", ".join(candidate.file for candidate in candidates)
                raise StructuralError(
                    f"Ambiguous parent GUID {entry.parent_key} for entry: {entry.describe()}; "
                    f"claimed by {files}",
                    path=self.data_path(entry),
                    guid=entry.parent_key,
                )
            parents[id(entry)] = candidates[0]

        rooted: set[int] = set()
        for entry in entries:
            chain: List[ManifestEntry] = []
            current: Optional[ManifestEntry] = entry
            while current is not None and id(current) not in rooted:
                if any(current is seen for seen in chain):
                    start = next(index for index, seen in enumerate(chain) if seen is current)
                    cycle = [member.guid or "noguid" for member in chain[start:]] + [current.guid or "noguid"]
                    raise StructuralError(
                        f"Containment cycle: {' -> '.join(cycle)}",
                        path=self.data_path(current),
                        guid=current.guid,
                    )
                chain.append(current)
                current = parents.get(id(current))
            rooted.update(id(member) for member in chain)

    def _load_records(self, entries: Sequence[ManifestEntry]) -> Dict[int, Dict[str, Any]]:
        records: Dict[int, Dict[str, Any]] = {}
        for entry in entries:
            path = self.data_path(entry)
            if not path.is_file():
                raise StructuralError(
                    f"Missing file for entry: {entry.describe()}; expected path: {path}",
                    path=path,
                    guid=entry.guid,
                )
            record = read_json(path)
            if not isinstance(record, dict):
                raise StructuralError(f"Object file is not a JSON object: {path}", path=path, guid=entry.guid)
            file_guid = record.get("GUID")
            if entry.guid and file_guid and entry.guid != file_guid:
                raise StructuralError(
                    f"GUID mismatch: manifest({entry.guid}) != file({file_guid}) at {entry.file}",
                    path=path,
                    guid=entry.guid,
                )
            records[id(entry)] = record
        return records

    def _assemble(
        self,
        entry: ManifestEntry,
        records: Mapping[int, Dict[str, Any]],
        groups: Mapping[str, List[ManifestEntry]],
        warnings: List[str],
    ) -> Dict[str, Any]:
        path = self.data_path(entry)
        node = dict(records[id(entry)])

        script = self._read_script(path)
        if script is not None:
            result = self.bundler.bundle(script, label=f"object:{entry.guid or 'noguid'}")
            warnings.extend(result.warnings)
            node["LuaScript"] = result.source
        for key, suffix in (("LuaScriptState", STATE_SUFFIX), ("XmlUI", MARKUP_SUFFIX), ("Memo", MEMO_SUFFIX)):
            text = read_text_if_exists(sibling_path(path, suffix))
            if text is not None:
                node[key] = text

        children = groups.get(entry.guid, []) if entry.guid else []
        if children:
            node[CHILDREN_KEY] = [
                self._assemble(child, records, groups, warnings) for child in children
            ]
        return node

    @staticmethod
    def _read_script(path: Path) -> Optional[str]:
        for suffix in SCRIPT_SUFFIXES:
            text = read_text_if_exists(sibling_path(path, suffix))
            if text is not None:
                return text
        return None


def _duplicate_guid_warnings(entries: Sequence[ManifestEntry]) -> List[str]:
    seen: set[str] = set()
    warnings: List[str] = []
    for entry in entries:
        if not entry.guid:
            continue
        if entry.guid in seen:
            message = f"Duplicate GUID in manifest: {entry.guid} ({entry.file})"
            logger.warning("%s", message)
            warnings.append(message)
        seen.add(entry.guid)
    return warnings


__all__ = [
    "CHILDREN_KEY",
    "ManifestReconstructor",
    "ReconstructionResult",
    "group_by_parent",
    "sibling_path",
    "sort_by_order",
]
