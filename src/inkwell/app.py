"""Command line entry point for offline sanitizing, checking and converting markup."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, TextIO

from .editor.editor import MarkupEditor
from .editor.integrity import RepairOutcome
from .editor.sanitizer import ContentSanitizer
from .editor.surface import MemorySurface
from .services.importers import FileImporter, ImporterError
from .services.settings import EditorSettings, SettingsStore
from .utils import logging as logging_utils

_DEBUG_VALUES = frozenset({"1", "true", "yes", "on", "debug"})
_LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_REPAIRED = 1
EXIT_USAGE = 2


def configure_logging(debug: bool = False) -> None:
    level = logging.DEBUG if debug else logging.INFO
    path = logging_utils.setup_logging(level, console=debug)
    _LOGGER.debug("Logging to %s at %s", path, logging.getLevelName(level))


def load_settings(
    path: Optional[Path] = None,
    *,
    store: SettingsStore | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> EditorSettings:
    """Load persisted settings or fall back to defaults."""

    active_store = store or SettingsStore(path)
    try:
        return active_store.load(overrides=overrides)
    except OSError as exc:
        _LOGGER.warning("Failed to load settings from %s: %s", active_store.path, exc)
        return EditorSettings()


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point invoked by the ``inkwell`` console script."""

    parser = _build_parser()
    args = parser.parse_args(argv)

    debug = args.debug or os.environ.get("INKWELL_DEBUG", "").strip().lower() in _DEBUG_VALUES
    configure_logging(debug)

    settings_path = args.settings_path or os.environ.get("INKWELL_SETTINGS_PATH")
    resolved_path = Path(settings_path).expanduser() if settings_path else None
    settings_store = SettingsStore(resolved_path)
    try:
        cli_overrides = _parse_overrides(args.overrides)
    except ValueError as exc:
        print(f"Invalid --set override: {exc}", file=sys.stderr)
        return EXIT_USAGE

    settings = load_settings(resolved_path, store=settings_store, overrides=cli_overrides or None)

    if args.command is None:
        parser.print_help(sys.stderr)
        return EXIT_USAGE
    if args.command == "settings":
        _dump_settings(settings, settings_store, overrides=cli_overrides)
        return EXIT_OK

    try:
        if args.command == "sanitize":
            return _run_sanitize(args.file)
        if args.command == "check":
            return _run_check(args.file, settings)
        return _run_convert(args.file, args.to, settings)
    except FileNotFoundError as exc:
        print(f"File not found: {exc}", file=sys.stderr)
        return EXIT_USAGE
    except ImporterError as exc:
        print(f"Import failed: {exc}", file=sys.stderr)
        return EXIT_USAGE


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="inkwell",
        description="Sanitize, check and convert rich-text editor markup.",
    )
    parser.add_argument("--debug", action="store_true", help="Enable verbose logging on stderr.")
    parser.add_argument(
        "--settings-path",
        metavar="PATH",
        help="Override the default ~/.inkwell/settings.json path.",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        metavar="KEY=VALUE",
        action="append",
        default=[],
        help="Override persisted settings for this run (repeatable).",
    )
    commands = parser.add_subparsers(dest="command", metavar="COMMAND")

    sanitize = commands.add_parser("sanitize", help="Print the sanitized markup of FILE.")
    sanitize.add_argument("file", type=Path, metavar="FILE")

    check = commands.add_parser(
        "check",
        help="Run the integrity check on FILE and print the repaired markup.",
    )
    check.add_argument("file", type=Path, metavar="FILE")

    convert = commands.add_parser("convert", help="Import FILE and print it as HTML or Markdown.")
    convert.add_argument("file", type=Path, metavar="FILE")
    convert.add_argument("--to", choices=("html", "markdown"), default="html")

    commands.add_parser("settings", help="Print the effective settings payload and exit.")
    return parser


def _read_source(path: Path) -> str:
    if not path.exists():
        raise FileNotFoundError(path)
    return path.read_text(encoding="utf-8")


def _run_sanitize(path: Path, *, stream: TextIO | None = None) -> int:
    destination = stream or sys.stdout
    destination.write(ContentSanitizer().sanitize(_read_source(path)))
    destination.write("\n")
    return EXIT_OK


def _run_check(path: Path, settings: EditorSettings, *, stream: TextIO | None = None) -> int:
    destination = stream or sys.stdout
    editor = MarkupEditor(MemorySurface(), settings=settings)
    try:
        editor.set_content(_read_source(path))
        outcome = editor.check_integrity()
        destination.write(editor.get_content())
        destination.write("\n")
    finally:
        editor.destroy()
    _LOGGER.info("Integrity check of %s finished: %s", path, outcome.value)
    return EXIT_OK if outcome is RepairOutcome.CLEAN else EXIT_REPAIRED


def _run_convert(path: Path, target: str, settings: EditorSettings, *, stream: TextIO | None = None) -> int:
    destination = stream or sys.stdout
    result = FileImporter().import_file(path)
    editor = MarkupEditor(MemorySurface(), settings=settings)
    try:
        editor.set_content(result.markup)
        output = editor.export_markdown() if target == "markdown" else editor.get_content()
    finally:
        editor.destroy()
    destination.write(output)
    destination.write("\n")
    return EXIT_OK


def _parse_overrides(items: Sequence[str]) -> Dict[str, int]:
    """Turn repeated ``--set KEY=VALUE`` flags into integer settings overrides."""

    known = {field.name for field in fields(EditorSettings)}
    overrides: Dict[str, int] = {}
    for entry in items:
        key, separator, raw_value = entry.partition("=")
        key = key.strip()
        if not separator or not key:
            raise ValueError(f"Override '{entry}' must use KEY=VALUE syntax.")
        if key not in known:
            raise ValueError(f"Unknown setting '{key}'.")
        try:
            overrides[key] = int(raw_value.strip(), 10)
        except ValueError:
            raise ValueError(f"Setting '{key}' expects an integer, got '{raw_value.strip()}'.") from None
    return overrides


def _dump_settings(
    settings: EditorSettings,
    store: SettingsStore,
    *,
    overrides: Mapping[str, Any],
    stream: TextIO | None = None,
) -> None:
    destination = stream or sys.stdout
    metadata = {
        "path": str(store.path),
        "cli_overrides": sorted(overrides.keys()),
        "environment_variables": _active_env_overrides(),
    }
    output = {"settings": asdict(settings), "meta": metadata}
    json.dump(output, destination, indent=2)
    destination.write("\n")


def _active_env_overrides() -> list[str]:
    return sorted(name for name in os.environ if name.startswith("INKWELL_"))
