"""Environment-driven configuration for the split/merge commands."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

_TRUTHY = "true"


@dataclass(frozen=True)
class Settings:
    src_dir: Path = Path("src")
    build_dir: Path = Path("build")
    archive_dir: Path = Path("archive")
    lib_dir: Path = Path("lib")
    input_save: Path = Path("Save.json")
    is_ci: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            src_dir=_path_from(env, "SRC_DIR", defaults.src_dir),
            build_dir=_path_from(env, "BUILD_DIR", defaults.build_dir),
            archive_dir=_path_from(env, "ARCHIVE_DIR", defaults.archive_dir),
            lib_dir=_path_from(env, "LIB_DIR", defaults.lib_dir),
            input_save=_path_from(env, "INPUT_SAVE", defaults.input_save),
            is_ci=detect_ci(env),
        )

    def with_overrides(self, **overrides: Optional[object]) -> "Settings":
        """Return a copy with the non-``None`` overrides applied."""

        values = {key: value for key, value in overrides.items() if value is not None}
        for key, value in list(values.items()):
            if key.endswith("_dir") or key == "input_save":
                values[key] = Path(str(value))
        return replace(self, **values)


def detect_ci(environ: Mapping[str, str]) -> bool:
    return any(
        str(environ.get(name, "")).lower() == _TRUTHY
        for name in ("CI", "GITHUB_ACTIONS")
    )


def load_local_env(path: Optional[Path] = None) -> bool:
    """Load a ``.env`` file without overriding variables already set."""

    env_file = path or Path.cwd() / ".env"
    if not env_file.exists():
        return False
    return load_dotenv(env_file, override=False)


def _path_from(env: Mapping[str, str], name: str, default: Path) -> Path:
    value = env.get(name)
    return Path(value) if value else default


__all__ = ["Settings", "detect_ci", "load_local_env"]
