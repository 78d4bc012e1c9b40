"""Lua ``require`` bundler producing luabundle-compatible scripts."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Sequence

from ..errors import ModuleResolutionError
from ..utils import read_text
from .runtime import RUNTIME_PREAMBLE, render_entry_point, render_module

logger = logging.getLogger(__name__)

MODULE_EXTENSIONS = (".lua", ".ttslua")

# require("id"), require ( 'id' ) or require "id"
_REQUIRE_RE = re.compile(
    r"""(^|\s)require\s*(?:\(\s*["']([^"']+)["']\s*\)|\s+["']([^"']+)["'])"""
)


@dataclass(slots=True)
class LuaModule:
    module_id: str
    path: Path
    code: str
    requires: List[str] = field(default_factory=list)


@dataclass(slots=True)
class BundleResult:
    """Outcome of one bundling call."""

    source: str
    modules: List[LuaModule] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def bundled(self) -> bool:
        return bool(self.modules)


def find_require_ids(code: str) -> List[str]:
    """Return distinct required module ids in first-seen order."""

    ids: Dict[str, None] = {}
    for match in _REQUIRE_RE.finditer(code):
        module_id = match.group(2) or match.group(3)
        if module_id:
            ids.setdefault(module_id, None)
    return list(ids)


def module_candidates(module_id: str, module_root: Path) -> List[Path]:
    parts = [part for part in module_id.split("/") if part]
    base = module_root.joinpath(*parts)
    return [base.with_name(base.name + ext) for ext in MODULE_EXTENSIONS]


def resolve_module_path(module_id: str, module_root: Path) -> Path:
    candidates = module_candidates(module_id, module_root)
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    expected = " or ".join(str(path) for path in candidates)
    raise ModuleResolutionError(
        f'Missing Lua module "{module_id}", expected: {expected}',
        module_id=module_id,
        candidates=candidates,
    )


class LuaBundler:
    """Resolves ``require`` graphs under a module root and emits one script."""

    def __init__(self, module_root: Path) -> None:
        self.module_root = Path(module_root)

    def bundle(self, source: str, *, label: str = "script") -> BundleResult:
        requires = find_require_ids(source)
        if not requires:
            logger.debug("No requires in %s, bundling skipped", label)
            return BundleResult(source=source)

        if not self.module_root.is_dir():
            raise ModuleResolutionError(
                f"Lua requires detected in {label}, but module directory not found: {self.module_root}",
                module_id=requires[0],
            )

        walk = _ModuleWalk(self.module_root)
        for module_id in requires:
            walk.visit(module_id, [])

        parts = [RUNTIME_PREAMBLE]
        parts.extend(render_module(module.module_id, module.code) for module in walk.modules)
        parts.append(render_entry_point(source))

        logger.debug("Bundled %d module(s) from %s for %s", len(walk.modules), self.module_root, label)
        return BundleResult(
            source="\n\n".join(parts),
            modules=walk.modules,
            warnings=walk.warnings,
        )


class _ModuleWalk:
    """Depth-first traversal state local to a single bundling call."""

    def __init__(self, module_root: Path) -> None:
        self.module_root = module_root
        self.visited: set[str] = set()
        self.modules: List[LuaModule] = []
        self.warnings: List[str] = []

    def visit(self, module_id: str, chain: Sequence[str]) -> None:
        if module_id in self.visited:
            return
        self.visited.add(module_id)

        path = resolve_module_path(module_id, self.module_root)
        code = read_text(path)
        module = LuaModule(module_id=module_id, path=path, code=code, requires=find_require_ids(code))

        path_ids = [*chain, module_id]
        for dependency in module.requires:
            if dependency in path_ids:
                message = "Circular require: " + " -> ".join([*path_ids, dependency])
                logger.warning("%s", message)
                self.warnings.append(message)
                continue
            self.visit(dependency, path_ids)

        self.modules.append(module)


def bundle_lua(source: str, module_root: Path) -> str:
    """Bundle ``source`` against ``module_root`` and return the final script."""

    return LuaBundler(module_root).bundle(source).source


__all__ = [
    "BundleResult",
    "LuaBundler",
    "LuaModule",
    "MODULE_EXTENSIONS",
    "bundle_lua",
    "find_require_ids",
    "module_candidates",
    "resolve_module_path",
]
