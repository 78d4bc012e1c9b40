"""Structural checks applied to an assembled save before it is written."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping


@dataclass(slots=True)
class ValidationReport:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def validate_save(save: Mapping[str, Any]) -> ValidationReport:
    report = ValidationReport()

    objects = save.get("ObjectStates")
    if not isinstance(objects, list) or not objects:
        report.errors.append("Save must contain non-empty ObjectStates array.")
        objects = objects if isinstance(objects, list) else []
    for key in ("SaveName", "GameMode"):
        value = save.get(key)
        if not value or not isinstance(value, str):
            report.errors.append(f"{key} is missing or invalid.")

    seen_guids: set[str] = set()
    for index, obj in enumerate(objects):
        prefix = f"ObjectStates[{index}]"
        if not isinstance(obj, Mapping):
            report.errors.append(f"{prefix} is not an object.")
            continue
        for key in ("GUID", "Name", "Transform"):
            if _blank(obj.get(key)):
                report.errors.append(f"{prefix} is missing {key}.")

        if _blank(obj.get("Nickname")):
            report.warnings.append(
                f"{prefix} is missing Nickname -> GUID: {obj.get('GUID') or 'N/A'}, "
                f"Name: {obj.get('Name') or 'N/A'} {_describe_position(obj.get('Transform'))}"
            )

        guid = obj.get("GUID")
        if not _blank(guid):
            if not isinstance(guid, str):
                report.errors.append(f"{prefix} has non-string GUID: {guid!r}")
            elif guid in seen_guids:
                report.errors.append(f"{prefix} has duplicate GUID: {guid}")
            else:
                seen_guids.add(guid)
    return report


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, (str, int, float)) and not value)


def _describe_position(transform: Any) -> str:
    if isinstance(transform, Mapping) and "posX" in transform:
        return f"at position ({transform.get('posX')}, {transform.get('posY')}, {transform.get('posZ')})"
    return "(position unknown)"


__all__ = ["ValidationReport", "validate_save"]
