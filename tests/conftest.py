from __future__ import annotations

from pathlib import Path

import pytest

from tts_savekit.settings import Settings


@pytest.fixture()
def lib_dir(tmp_path: Path) -> Path:
    path = tmp_path / "lib"
    path.mkdir()
    return path


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        src_dir=tmp_path / "src",
        build_dir=tmp_path / "build",
        archive_dir=tmp_path / "archive",
        lib_dir=tmp_path / "lib",
        input_save=tmp_path / "Save.json",
        is_ci=False,
    )
