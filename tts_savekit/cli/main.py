"""Command-line entry point for splitting, bundling and merging saves."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Mapping, Optional, Sequence

from tts_savekit.bundle.lua import LuaBundler
from tts_savekit.errors import SaveKitError, SaveValidationError
from tts_savekit.save.builder import BuildConfig, SaveBuilder
from tts_savekit.save.split import split_save
from tts_savekit.settings import Settings, load_local_env
from tts_savekit.utils import read_json, read_text, write_text

logger = logging.getLogger(__name__)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.debug)

    if not args.no_dotenv:
        load_local_env()
    settings = Settings.from_env()

    handlers = {
        "split": _handle_split,
        "merge": _handle_merge,
        "bundle": _handle_bundle,
    }
    try:
        return handlers[args.command](args, settings)
    except SaveKitError as exc:
        logger.error("%s", exc)
        payload: dict[str, object] = {"ok": False, "error": str(exc)}
        if isinstance(exc, SaveValidationError):
            payload["errors"] = exc.errors
        _print_json(payload)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tts-savekit", description="Tabletop Simulator save tooling.")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    parser.add_argument("--no-dotenv", action="store_true", help="Do not load .env from the working directory.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    split = subparsers.add_parser("split", help="Split a save into per-object files.")
    split.add_argument("save", nargs="?", help="Save JSON (defaults to INPUT_SAVE).")
    split.add_argument("--output-dir", help="Output directory (defaults to SRC_DIR).")

    merge = subparsers.add_parser("merge", help="Merge split sources into a versioned save.")
    merge.add_argument("--version", required=True, help="Version tag, e.g. v0.5.0 or dev.")
    merge.add_argument("--src-dir")
    merge.add_argument("--build-dir")
    merge.add_argument("--archive-dir")
    merge.add_argument("--lib-dir")

    bundle = subparsers.add_parser("bundle", help="Bundle one Lua script with its requires.")
    bundle.add_argument("script")
    bundle.add_argument("--lib-dir")
    bundle.add_argument("--output", help="Write the bundle here instead of stdout.")

    return parser


def _handle_split(args: argparse.Namespace, settings: Settings) -> int:
    save_path = Path(args.save) if args.save else settings.input_save
    output_dir = Path(args.output_dir) if args.output_dir else settings.src_dir
    save = read_json(save_path)
    if not isinstance(save, dict):
        raise SaveKitError(f"Save file is not a JSON object: {save_path}")

    result = split_save(save, output_dir)
    _print_json(
        {
            "ok": True,
            "objects": len(result.entries),
            "output_dir": str(result.output_dir),
            "globals": result.globals_extracted,
        }
    )
    return 0


def _handle_merge(args: argparse.Namespace, settings: Settings) -> int:
    settings = settings.with_overrides(
        src_dir=args.src_dir,
        build_dir=args.build_dir,
        archive_dir=args.archive_dir,
        lib_dir=args.lib_dir,
    )
    result = SaveBuilder(settings).build(BuildConfig(version=args.version))
    _print_json(
        {
            "ok": True,
            "output_path": str(result.output_path),
            "objects": result.object_count,
            "save_name": result.save_name,
            "game_mode": result.game_mode,
            "version": args.version,
            "archived": [str(path) for path in result.archived],
            "warnings": result.warnings,
            "logs": result.logs,
        }
    )
    return 0


def _handle_bundle(args: argparse.Namespace, settings: Settings) -> int:
    lib_dir = Path(args.lib_dir) if args.lib_dir else settings.lib_dir
    script_path = Path(args.script)
    if not script_path.is_file():
        raise SaveKitError(f"Script not found: {script_path}")

    result = LuaBundler(lib_dir).bundle(read_text(script_path), label=str(script_path))
    if not args.output:
        sys.stdout.write(result.source)
        return 0

    output = Path(args.output)
    write_text(output, result.source)
    _print_json(
        {
            "ok": True,
            "output": str(output),
            "modules": [module.module_id for module in result.modules],
            "warnings": result.warnings,
        }
    )
    return 0


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _print_json(payload: Mapping[str, object]) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
