"""Settings dataclasses and persistence helpers."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping

__all__ = [
    "EditorSettings",
    "SettingsStore",
    "SETTINGS_DIR",
    "DEFAULT_HISTORY_LIMIT",
    "DEFAULT_AUTO_SAVE_DELAY",
]

LOGGER = logging.getLogger(__name__)
SETTINGS_DIR = Path.home() / ".inkwell"
_DEFAULT_SETTINGS_PATH = SETTINGS_DIR / "settings.json"
_SETTINGS_VERSION = 1
_INT_ENV_OVERRIDES: Mapping[str, str] = {
    "INKWELL_HISTORY_LIMIT": "history_limit",
    "INKWELL_AUTO_SAVE_DELAY": "auto_save_delay",
    "INKWELL_INTEGRITY_CHECK_DELAY": "integrity_check_delay",
}
DEFAULT_HISTORY_LIMIT = 50
DEFAULT_AUTO_SAVE_DELAY = 1000


@dataclass(slots=True, frozen=True)
class EditorSettings:
    """Options consumed by a single editor instance.

    Delays are expressed in milliseconds. ``auto_save_delay == 0`` disables
    auto-persist scheduling entirely.
    """

    history_limit: int = DEFAULT_HISTORY_LIMIT
    auto_save_delay: int = DEFAULT_AUTO_SAVE_DELAY
    integrity_check_delay: int = 100

    def __post_init__(self) -> None:
        if not _is_int(self.history_limit) or self.history_limit < 1:
            raise ValueError(f"history_limit must be a positive integer, got {self.history_limit!r}")
        if not _is_int(self.auto_save_delay) or self.auto_save_delay < 0:
            raise ValueError(f"auto_save_delay must be a non-negative integer, got {self.auto_save_delay!r}")
        if not _is_int(self.integrity_check_delay) or self.integrity_check_delay < 0:
            raise ValueError(
                f"integrity_check_delay must be a non-negative integer, got {self.integrity_check_delay!r}"
            )

    @property
    def auto_save_enabled(self) -> bool:
        return self.auto_save_delay > 0


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class SettingsStore:
    """Persistence adapter for :class:`EditorSettings`."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or _DEFAULT_SETTINGS_PATH

    @property
    def path(self) -> Path:
        """Return the resolved path backing this store."""

        return self._path

    def load(self, *, overrides: Mapping[str, Any] | None = None) -> EditorSettings:
        """Load settings from disk, applying CLI/environment overrides when present."""

        payload = self._read_payload()
        settings = EditorSettings()
        if payload:
            data = _filter_fields(payload)
            try:
                settings = EditorSettings(**data)
            except (TypeError, ValueError) as exc:
                LOGGER.warning("Settings payload contained unexpected data: %s", exc)
                settings = EditorSettings()
            LOGGER.debug("Settings loaded from %s: %s", self._path, sorted(data))

        if overrides:
            settings = self._apply_overrides(settings, overrides, source="CLI")

        return self._apply_env_overrides(settings)

    def save(self, settings: EditorSettings) -> Path:
        """Persist settings to disk with atomic file writes."""

        payload: Dict[str, Any] = asdict(settings)
        payload["version"] = _SETTINGS_VERSION
        body = json.dumps(payload, indent=2, sort_keys=True)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".tmp")
        tmp_path.write_text(body, encoding="utf-8")
        tmp_path.replace(self._path)
        LOGGER.debug("Settings saved to %s", self._path)
        return self._path

    def _read_payload(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            text = self._path.read_text(encoding="utf-8")
            data = json.loads(text)
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as exc:
            LOGGER.warning("Settings file %s is not valid JSON: %s", self._path, exc)
            return {}
        if not isinstance(data, dict):
            LOGGER.warning("Settings file %s does not contain an object", self._path)
            return {}
        return data

    def _apply_overrides(
        self,
        settings: EditorSettings,
        overrides: Mapping[str, Any],
        *,
        source: str = "runtime",
    ) -> EditorSettings:
        allowed = {field.name for field in fields(EditorSettings)}
        filtered = {key: value for key, value in overrides.items() if key in allowed and value is not None}
        if not filtered:
            return settings
        LOGGER.debug("Applying %s settings overrides: %s", source, sorted(filtered))
        try:
            return replace(settings, **filtered)
        except (TypeError, ValueError) as exc:
            LOGGER.warning("Ignoring invalid %s settings overrides: %s", source, exc)
            return settings

    def _apply_env_overrides(self, settings: EditorSettings) -> EditorSettings:
        overrides: Dict[str, Any] = {}
        for env_name, field_name in _INT_ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is None:
                continue
            try:
                overrides[field_name] = int(value, 10)
            except ValueError:
                LOGGER.warning(
                    "Environment override %s=%s is not a valid integer",
                    env_name,
                    value,
                )
        if overrides:
            settings = self._apply_overrides(settings, overrides, source="environment")
        return settings


def _filter_fields(payload: Mapping[str, Any]) -> Dict[str, Any]:
    allowed = {field.name for field in fields(EditorSettings)}
    return {key: value for key, value in payload.items() if key in allowed}
