"""Split, bundle and merge tooling for Tabletop Simulator saves."""

__version__ = "0.1.0"
from .bundle import BundleResult, LuaBundler, bundle_lua
from .errors import (
    MarkupIncludeError,
    ModuleResolutionError,
    SaveKitError,
    SaveValidationError,
    StructuralError,
)
from .save import BuildConfig, BuildResult, ManifestReconstructor, SaveBuilder, SaveSplitter, split_save
from .schemas import ManifestEntry
from .settings import Settings

__all__ = [
    "__version__",
    "BuildConfig",
    "BuildResult",
    "BundleResult",
    "LuaBundler",
    "ManifestEntry",
    "ManifestReconstructor",
    "MarkupIncludeError",
    "ModuleResolutionError",
    "SaveBuilder",
    "SaveKitError",
    "SaveSplitter",
    "SaveValidationError",
    "Settings",
    "StructuralError",
    "bundle_lua",
    "split_save",
]
