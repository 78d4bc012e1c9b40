"""Split and merge of Tabletop Simulator save documents."""

from .builder import BuildConfig, BuildResult, SaveBuilder, load_manifest
from .reconstruct import ManifestReconstructor, ReconstructionResult, group_by_parent, sort_by_order
from .split import SaveSplitter, SplitResult, split_save

__all__ = [
    "BuildConfig",
    "BuildResult",
    "ManifestReconstructor",
    "ReconstructionResult",
    "SaveBuilder",
    "SaveSplitter",
    "SplitResult",
    "group_by_parent",
    "load_manifest",
    "sort_by_order",
    "split_save",
]
