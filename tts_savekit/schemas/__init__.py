"""Schema definitions for split-save metadata."""

from .manifest import ManifestEntry, ROOT_PARENT, dump_manifest_payload, parse_manifest

__all__ = [
    "ManifestEntry",
    "ROOT_PARENT",
    "dump_manifest_payload",
    "parse_manifest",
]
