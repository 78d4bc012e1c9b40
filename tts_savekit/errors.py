"""Exception hierarchy shared by the split/merge tooling."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence


class SaveKitError(RuntimeError):
    """Base class for fatal build and split failures."""


class StructuralError(SaveKitError):
    """Raised when source files are missing, unparsable or inconsistent."""

    def __init__(self, message: str, *, path: Optional[Path] = None, guid: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path
        self.guid = guid


class ModuleResolutionError(SaveKitError):
    """Raised when a required Lua module cannot be located."""

    def __init__(self, message: str, *, module_id: str, candidates: Sequence[Path] = ()) -> None:
        super().__init__(message)
        self.module_id = module_id
        self.candidates = list(candidates)


class MarkupIncludeError(SaveKitError):
    """Raised when an XML include directive cannot be resolved."""


class SaveValidationError(SaveKitError):
    """Raised when the assembled save document fails structural validation."""

    def __init__(self, errors: Sequence[str]) -> None:
        self.errors = list(errors)
        summary = "; ".join(self.errors)
        super().__init__(f"Save validation failed: {summary}")


__all__ = [
    "SaveKitError",
    "StructuralError",
    "ModuleResolutionError",
    "MarkupIncludeError",
    "SaveValidationError",
]
