"""Merge a split source tree back into a single versioned save file."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from ..bundle.lua import LuaBundler
from ..bundle.markup import has_includes, resolve_includes
from ..errors import MarkupIncludeError, SaveValidationError, StructuralError
from ..schemas.manifest import ROOT_PARENT, ManifestEntry, parse_manifest
from ..settings import Settings
from ..utils import read_json, read_text, read_text_if_exists, write_json
from .naming import archive_timestamp, is_dev_version, sanitize_filename, version_tag
from .reconstruct import ManifestReconstructor
from .split import BASE_FILE, GLOBAL_DIR, MANIFEST_FILE
from .validation import validate_save

logger = logging.getLogger(__name__)

DEFAULT_BASE_NAME = "TTS_Save"
GLOBAL_SCRIPTS = ("Global.lua", "Global.ttslua")
GLOBAL_STATE = "Global.state.txt"
GLOBAL_UI = "UI.xml"
GLOBAL_UI_INCLUDES = "UI"


@dataclass(slots=True)
class BuildConfig:
    """Configuration describing one merge run."""

    version: str
    built_at: Optional[datetime] = None


@dataclass(slots=True)
class BuildResult:
    output_path: Path
    object_count: int
    save_name: str
    game_mode: str
    archived: List[Path] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    logs: List[str] = field(default_factory=list)


class SaveBuilder:
    """Coordinates reconstruction, global assets, archival and validation."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.bundler = LuaBundler(settings.lib_dir)

    def build(self, config: BuildConfig) -> BuildResult:
        src_dir = self.settings.src_dir
        manifest_path = src_dir / MANIFEST_FILE
        base_path = src_dir / BASE_FILE
        if not manifest_path.is_file():
            raise StructuralError(f"{MANIFEST_FILE} not found in {src_dir}", path=manifest_path)
        if not base_path.is_file():
            raise StructuralError(f"{BASE_FILE} not found in {src_dir}", path=base_path)

        entries = load_manifest(manifest_path)
        base = read_json(base_path)
        if not isinstance(base, dict):
            raise StructuralError(f"{BASE_FILE} is not a JSON object: {base_path}", path=base_path)

        reconstruction = ManifestReconstructor(src_dir, self.bundler).reconstruct(entries)
        warnings = list(reconstruction.warnings)
        logs: List[str] = []

        base_name = pick_base_name(base, reconstruction.groups.get(ROOT_PARENT, []))
        output_path = self.settings.build_dir / f"{base_name}_v{version_tag(config.version)}.json"

        merged: Dict[str, Any] = dict(base)
        merged.update(
            {
                "ObjectStates": reconstruction.objects,
                "SaveName": base["SaveName"] if _non_blank(base.get("SaveName")) else base_name,
                "GameMode": base["GameMode"] if _non_blank(base.get("GameMode")) else base_name,
                "VersionNumber": config.version,
            }
        )
        warnings.extend(self._attach_globals(merged, src_dir / GLOBAL_DIR))

        report = validate_save(merged)
        if not report.ok:
            raise SaveValidationError(report.errors)
        for warning in report.warnings:
            logger.warning("Validation warning: %s", warning)
        warnings.extend(report.warnings)

        archived: List[Path] = []
        if is_dev_version(config.version):
            logs.append("Dev build detected; archiving is disabled and the output is overwritten.")
        elif self.settings.is_ci:
            logs.append("CI detected; archiving is disabled.")
        else:
            archived, archive_warnings = archive_previous_builds(
                self.settings.build_dir,
                self.settings.archive_dir,
                merged["GameMode"],
                now=config.built_at,
            )
            warnings.extend(archive_warnings)
            logs.extend(f"Archived {path}" for path in archived)

        write_json(merged, output_path)
        logs.append(f"Merged {len(reconstruction.objects)} objects into {output_path}")
        logger.info("Merged %d objects into %s", len(reconstruction.objects), output_path)

        return BuildResult(
            output_path=output_path,
            object_count=len(reconstruction.objects),
            save_name=merged["SaveName"],
            game_mode=merged["GameMode"],
            archived=archived,
            warnings=warnings,
            logs=logs,
        )

    def _attach_globals(self, merged: Dict[str, Any], global_dir: Path) -> List[str]:
        warnings: List[str] = []
        for name in GLOBAL_SCRIPTS:
            script = read_text_if_exists(global_dir / name)
            if script is not None:
                result = self.bundler.bundle(script, label="Global")
                warnings.extend(result.warnings)
                merged["LuaScript"] = result.source
                break

        state = read_text_if_exists(global_dir / GLOBAL_STATE)
        if state is not None:
            merged["LuaScriptState"] = state

        ui_path = global_dir / GLOBAL_UI
        if ui_path.is_file():
            raw = read_text(ui_path)
            merged["XmlUI"] = raw
            if has_includes(raw):
                include_dir = global_dir / GLOBAL_UI_INCLUDES
                source_dir = include_dir if include_dir.is_dir() else global_dir
                try:
                    merged["XmlUI"] = resolve_includes(raw, source_dir)
                    logger.debug("XML bundled with includes from %s", source_dir)
                except MarkupIncludeError as exc:
                    message = f"Error bundling XML, using raw UI.xml: {exc}"
                    logger.warning("%s", message)
                    warnings.append(message)
        return warnings


def load_manifest(path: Path) -> List[ManifestEntry]:
    payload = read_json(path)
    if not isinstance(payload, list):
        raise StructuralError(f"Manifest must be a JSON array: {path}", path=path)
    try:
        return parse_manifest(payload)
    except ValidationError as exc:
        raise StructuralError(f"Invalid manifest {path}: {exc}", path=path) from exc


def pick_base_name(base: Dict[str, Any], top_level: Sequence[ManifestEntry]) -> str:
    """Derive the output base name from SaveName, GameMode or the first object."""

    if _non_blank(base.get("SaveName")):
        primary = base["SaveName"].strip()
    elif _non_blank(base.get("GameMode")):
        primary = base["GameMode"].strip()
    elif top_level:
        primary = top_level[0].nickname or top_level[0].type or DEFAULT_BASE_NAME
    else:
        primary = DEFAULT_BASE_NAME
    return sanitize_filename(primary, DEFAULT_BASE_NAME)


def archive_previous_builds(
    build_dir: Path,
    archive_dir: Path,
    game_mode: str,
    *,
    now: Optional[datetime] = None,
) -> tuple[List[Path], List[str]]:
    """Move earlier builds of the same game mode into ``archive_dir``."""

    archived: List[Path] = []
    warnings: List[str] = []
    if not build_dir.is_dir():
        return archived, warnings

    stamp = archive_timestamp(now or datetime.now(timezone.utc))
    for path in sorted(build_dir.glob("*.json")):
        try:
            content = json.loads(read_text(path))
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as exc:
            message = f"Skipping unreadable build {path}: {exc}"
            logger.warning("%s", message)
            warnings.append(message)
            continue
        if not isinstance(content, dict) or content.get("GameMode") != game_mode:
            continue
        archive_dir.mkdir(parents=True, exist_ok=True)
        target = archive_dir / f"{path.stem}_{stamp}.json"
        path.replace(target)
        logger.info("Archived %s -> %s", path.name, target)
        archived.append(target)
    return archived, warnings


def _non_blank(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


__all__ = [
    "BuildConfig",
    "BuildResult",
    "SaveBuilder",
    "archive_previous_builds",
    "load_manifest",
    "pick_base_name",
]
