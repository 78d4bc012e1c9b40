"""Script and markup bundling."""

from .lua import BundleResult, LuaBundler, bundle_lua, find_require_ids
from .markup import has_includes, resolve_includes
from .runtime import RUNTIME_PREAMBLE

__all__ = [
    "BundleResult",
    "LuaBundler",
    "RUNTIME_PREAMBLE",
    "bundle_lua",
    "find_require_ids",
    "has_includes",
    "resolve_includes",
]
