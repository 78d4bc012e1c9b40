from __future__ import annotations

import os
from pathlib import Path

import pytest

from tts_savekit.schemas.manifest import ManifestEntry, parse_manifest
from tts_savekit.settings import Settings, detect_ci, load_local_env


def test_settings_defaults_and_env_overrides() -> None:
    defaults = Settings.from_env({})
    assert defaults.src_dir == Path("src")
    assert defaults.lib_dir == Path("lib")
    assert defaults.is_ci is False

    custom = Settings.from_env({"SRC_DIR": "mod/src", "BUILD_DIR": "out", "LIB_DIR": "lua", "CI": "TRUE"})
    assert custom.src_dir == Path("mod/src")
    assert custom.build_dir == Path("out")
    assert custom.lib_dir == Path("lua")
    assert custom.archive_dir == Path("archive")
    assert custom.is_ci is True


def test_detect_ci() -> None:
    assert detect_ci({"GITHUB_ACTIONS": "true"})
    assert not detect_ci({"CI": "1"})
    assert not detect_ci({})


def test_with_overrides_ignores_none() -> None:
    settings = Settings().with_overrides(src_dir="other", build_dir=None)

    assert settings.src_dir == Path("other")
    assert settings.build_dir == Path("build")


def test_load_local_env_keeps_existing_values(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("SRC_DIR=from_dotenv\nBUILD_DIR=dotenv_build\n", encoding="utf-8")
    monkeypatch.setenv("SRC_DIR", "placeholder")
    monkeypatch.delenv("SRC_DIR")
    monkeypatch.setenv("BUILD_DIR", "from_shell")

    assert load_local_env(env_file) is True

    assert os.environ["SRC_DIR"] == "from_dotenv"
    assert os.environ["BUILD_DIR"] == "from_shell"
    assert load_local_env(tmp_path / "absent.env") is False


def test_manifest_entry_order_coercion() -> None:
    entries = parse_manifest(
        [
            {"type": "Card", "file": "a.json", "order": 2},
            {"type": "Card", "file": "b.json", "order": "3"},
            {"type": "Card", "file": "c.json", "order": True},
            {"type": "Card", "file": "d.json", "order": 1.5, "custom": "kept"},
        ]
    )

    assert [entry.order for entry in entries] == [2, None, None, 1.5]
    assert entries[3].model_extra == {"custom": "kept"}
    assert entries[0].parent_key == "__root__"


def test_manifest_entry_parent_key() -> None:
    entry = ManifestEntry(type="Card", file="x.json", parent="abc123")

    assert entry.parent_key == "abc123"
