from __future__ import annotations

import json
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path

import pytest

from tts_savekit.errors import SaveValidationError, StructuralError
from tts_savekit.save.builder import BuildConfig, SaveBuilder, archive_previous_builds, pick_base_name
from tts_savekit.save.split import split_save
from tts_savekit.schemas.manifest import ManifestEntry
from tts_savekit.settings import Settings

from .test_split import _sample_save

BUILT_AT = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def _prepare_sources(settings: Settings) -> None:
    split_save(_sample_save(), settings.src_dir)


def test_build_writes_versioned_save(settings: Settings) -> None:
    _prepare_sources(settings)

    result = SaveBuilder(settings).build(BuildConfig(version="v1.2.0", built_at=BUILT_AT))

    assert result.output_path == settings.build_dir / "Test_Game_v1.2.0.json"
    merged = json.loads(result.output_path.read_text(encoding="utf-8"))
    assert merged["VersionNumber"] == "v1.2.0"
    assert merged["SaveName"] == "Test Game"
    assert merged["LuaScript"] == "print('global')"
    assert merged["XmlUI"] == "<Panel/>"
    assert "LuaScriptState" not in merged
    assert [obj["GUID"] for obj in merged["ObjectStates"]] == ["0bag00", "c0ffee", "ab12cd"]
    assert result.object_count == 3
    assert any("missing Nickname" in warning for warning in result.warnings)


def test_global_script_is_bundled_and_ui_includes_resolved(settings: Settings) -> None:
    _prepare_sources(settings)
    global_dir = settings.src_dir / "Global"
    (global_dir / "Global.lua").write_text('local cfg = require("config")\n', encoding="utf-8")
    settings.lib_dir.mkdir()
    (settings.lib_dir / "config.lua").write_text("return { debug = false }", encoding="utf-8")
    (global_dir / "UI").mkdir()
    (global_dir / "UI" / "hud.xml").write_text("<Text>HUD</Text>", encoding="utf-8")
    (global_dir / "UI.xml").write_text('<Include src="hud.xml"/>', encoding="utf-8")

    result = SaveBuilder(settings).build(BuildConfig(version="dev"))

    merged = json.loads(result.output_path.read_text(encoding="utf-8"))
    assert merged["LuaScript"].count('__bundle_register("config"') == 1
    assert merged["XmlUI"] == "<!-- include hud.xml -->\n<Text>HUD</Text>\n<!-- end include hud.xml -->"


def test_broken_ui_include_falls_back_to_raw_markup(settings: Settings) -> None:
    _prepare_sources(settings)
    raw = '<Include src="nope.xml"/>'
    (settings.src_dir / "Global" / "UI.xml").write_text(raw, encoding="utf-8")

    result = SaveBuilder(settings).build(BuildConfig(version="dev"))

    merged = json.loads(result.output_path.read_text(encoding="utf-8"))
    assert merged["XmlUI"] == raw
    assert any("Error bundling XML" in warning for warning in result.warnings)


def test_missing_object_file_writes_nothing(settings: Settings) -> None:
    settings.src_dir.mkdir()
    (settings.src_dir / "base.json").write_text('{"SaveName": "x", "GameMode": "x"}', encoding="utf-8")
    (settings.src_dir / "manifest.json").write_text(
        json.dumps([{"type": "Card", "guid": "g1", "file": "missing.json", "parent": None}]),
        encoding="utf-8",
    )

    with pytest.raises(StructuralError) as excinfo:
        SaveBuilder(settings).build(BuildConfig(version="v1"))

    assert "g1" in str(excinfo.value)
    assert str(settings.src_dir / "missing.json") in str(excinfo.value)
    assert not settings.build_dir.exists()


def test_missing_manifest_is_structural(settings: Settings) -> None:
    settings.src_dir.mkdir()

    with pytest.raises(StructuralError, match="manifest.json not found"):
        SaveBuilder(settings).build(BuildConfig(version="v1"))


def test_validation_failure_aborts_before_writing(settings: Settings) -> None:
    save = _sample_save()
    save["ObjectStates"] = [{"GUID": "a", "Name": "Card"}]
    split_save(save, settings.src_dir)

    with pytest.raises(SaveValidationError) as excinfo:
        SaveBuilder(settings).build(BuildConfig(version="v1"))

    assert excinfo.value.errors == ["ObjectStates[0] is missing Transform."]
    assert not settings.build_dir.exists()


def test_previous_builds_are_archived(settings: Settings) -> None:
    _prepare_sources(settings)
    settings.build_dir.mkdir()
    previous = settings.build_dir / "Test_Game_v1.1.0.json"
    previous.write_text(json.dumps({"GameMode": "Test Game"}), encoding="utf-8")
    unrelated = settings.build_dir / "Other_v1.json"
    unrelated.write_text(json.dumps({"GameMode": "Other"}), encoding="utf-8")

    result = SaveBuilder(settings).build(BuildConfig(version="v1.2.0", built_at=BUILT_AT))

    archived = settings.archive_dir / "Test_Game_v1.1.0_2026-01-02T03-04-05.json"
    assert result.archived == [archived]
    assert archived.exists()
    assert not previous.exists()
    assert unrelated.exists()


@pytest.mark.parametrize("version, is_ci", [("dev", False), ("vDev", False), ("v2.0.0", True)])
def test_archiving_skipped_for_dev_and_ci(settings: Settings, version: str, is_ci: bool) -> None:
    _prepare_sources(settings)
    settings.build_dir.mkdir()
    previous = settings.build_dir / "Test_Game_v1.1.0.json"
    previous.write_text(json.dumps({"GameMode": "Test Game"}), encoding="utf-8")

    result = SaveBuilder(replace(settings, is_ci=is_ci)).build(BuildConfig(version=version))

    assert result.archived == []
    assert previous.exists()
    assert not settings.archive_dir.exists()


def test_archive_skips_unreadable_builds(tmp_path: Path) -> None:
    build_dir = tmp_path / "build"
    build_dir.mkdir()
    (build_dir / "broken.json").write_text("{", encoding="utf-8")

    archived, warnings = archive_previous_builds(build_dir, tmp_path / "archive", "Game", now=BUILT_AT)

    assert archived == []
    assert len(warnings) == 1
    assert "broken.json" in warnings[0]


def test_pick_base_name_fallbacks() -> None:
    first = ManifestEntry(type="Bag", nickname="Loot Bag", file="a.json")

    assert pick_base_name({"SaveName": "  My Save "}, []) == "My_Save"
    assert pick_base_name({"SaveName": " ", "GameMode": "Mode"}, []) == "Mode"
    assert pick_base_name({}, [first]) == "Loot_Bag"
    assert pick_base_name({}, []) == "TTS_Save"
