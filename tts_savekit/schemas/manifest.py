"""Pydantic models describing the split-save manifest."""

from __future__ import annotations

import math
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

ROOT_PARENT = "__root__"


class ManifestEntry(BaseModel):
    type: str = Field(default="Object", description="Display label, usually the object Name.")
    name: Optional[str] = None
    nickname: Optional[str] = None
    guid: Optional[str] = None
    file: str = Field(..., description="Data file path relative to the source root.")
    parent: Optional[str] = Field(default=None, description="GUID of the owning object; null at top level.")
    order: Optional[Union[int, float]] = Field(default=None, description="Position among siblings.")

    model_config = ConfigDict(extra="allow", frozen=True)

    @field_validator("order", mode="before")
    @classmethod
    def _numeric_order_only(cls, value: Any) -> Any:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        if isinstance(value, float) and math.isnan(value):
            return None
        return value

    @property
    def parent_key(self) -> str:
        return self.parent or ROOT_PARENT

    @property
    def sort_key(self) -> float:
        return float(self.order) if self.order is not None else math.inf

    def describe(self) -> str:
        return f'{self.type} "{self.nickname or ""}" ({self.guid or "noguid"})'


_MANIFEST_ADAPTER = TypeAdapter(List[ManifestEntry])


def parse_manifest(payload: Any) -> List[ManifestEntry]:
    return _MANIFEST_ADAPTER.validate_python(payload)


def dump_manifest_payload(entries: List[ManifestEntry]) -> list[dict[str, Any]]:
    return [entry.model_dump(mode="json") for entry in entries]


__all__ = [
    "ManifestEntry",
    "ROOT_PARENT",
    "dump_manifest_payload",
    "parse_manifest",
]
