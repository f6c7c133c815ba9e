"""
User settings.

Settings are a flat EasyDict. They are loaded from defaults, then from a
JSON settings store, then from ``POINT_MAPPER_*`` environment variables.
Persistence is best effort: failures are logged and defaults are used.
"""

import json
import logging
import os
import re
from datetime import date
from gettext import gettext as _
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from easydict import EasyDict as edict

from ..utils.env import load_cfg_from_env
from .errors import PersistenceError

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS: Dict[str, Any] = {
    # Appearance
    "primary_color1": "#1e3a8a",
    "primary_color2": "#065f46",
    "secondary_color1": "#4ade80",
    "secondary_color2": "#eab308",
    "show_labels": True,
    "point_size": 8,
    "label_font_size": 12,
    "theme": "ocean",
    # Behavior
    "auto_suggest_ids": True,
    "click_tolerance": 15,
    "confirm_delete": True,
    "enable_shortcuts": True,
    # Export
    "include_original_coords": True,
    "include_point_type": True,
    "csv_delimiter": ",",
    # Advanced
    "history_size": 50,
}

THEMES: Dict[str, Dict[str, str]] = {
    "ocean": {
        "primary_color1": "#1e3a8a",
        "primary_color2": "#065f46",
        "secondary_color1": "#4ade80",
        "secondary_color2": "#eab308",
    },
    "forest": {
        "primary_color1": "#14532d",
        "primary_color2": "#065f46",
        "secondary_color1": "#22c55e",
        "secondary_color2": "#84cc16",
    },
    "sunset": {
        "primary_color1": "#c2410c",
        "primary_color2": "#dc2626",
        "secondary_color1": "#f59e0b",
        "secondary_color2": "#eab308",
    },
    "cosmic": {
        "primary_color1": "#581c87",
        "primary_color2": "#312e81",
        "secondary_color1": "#a855f7",
        "secondary_color2": "#3b82f6",
    },
}

CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
TRUE_STRINGS = {"1", "true", "yes", "on"}
FALSE_STRINGS = {"0", "false", "no", "off"}


def default_settings() -> edict:
    return edict(DEFAULT_SETTINGS)


def normalize_key(key: str) -> str:
    """Map ``clickTolerance`` and ``click_tolerance`` to ``click_tolerance``."""
    return CAMEL_BOUNDARY.sub("_", key).lower()


def coerce_value(default: Any, value: Any) -> Any:
    """
    Convert ``value`` to the type of ``default``.

    Raises:
        ValueError: If the value cannot be converted
    """
    if isinstance(default, bool):
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return bool(value)
        text = str(value).strip().lower()
        if text in TRUE_STRINGS:
            return True
        if text in FALSE_STRINGS:
            return False
        raise ValueError(f"Not a boolean: {value!r}")
    if isinstance(default, int):
        if isinstance(value, bool):
            raise ValueError(f"Not an integer: {value!r}")
        return int(float(value))
    if isinstance(default, str):
        return str(value)
    return value


def merge_settings(
    settings: Mapping[str, Any], updates: Mapping[str, Any]
) -> Tuple[edict, List[str]]:
    """
    Shallow merge ``updates`` over ``settings``.

    Unknown keys are ignored, missing keys keep their current value and
    values that cannot be converted to the expected type are skipped.

    Returns:
        (merged settings, ignored keys)
    """
    merged = edict(dict(settings))
    ignored = []
    for raw_key, value in updates.items():
        key = normalize_key(str(raw_key))
        if key not in DEFAULT_SETTINGS:
            ignored.append(raw_key)
            continue
        try:
            merged[key] = coerce_value(DEFAULT_SETTINGS[key], value)
        except (TypeError, ValueError, OverflowError):
            logger.warning(
                _("Ignoring invalid value for setting {key}: {value!r}").format(
                    key=key, value=value
                )
            )
            ignored.append(raw_key)
    if ignored:
        logger.warning(
            _("Ignoring unknown settings: {keys}").format(keys=", ".join(map(str, ignored)))
        )
    return merged, ignored


def apply_theme(settings: edict, theme: str) -> bool:
    """Copy a preset's colors into ``settings``. Unknown themes are ignored."""
    colors = THEMES.get(theme)
    if colors is None:
        return False
    settings.update(colors)
    settings.theme = theme
    return True


def default_settings_path() -> Path:
    config_home = os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config"
    return Path(config_home) / "point_mapper" / "settings.json"


class JSONSettingsStore:
    """
    Persistent key-value store for settings, backed by one JSON file.

    ``load`` and ``save`` raise ``PersistenceError``; ``get`` and ``set``
    are best effort and only log failures.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else default_settings_path()

    def load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Failed to load settings from {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise PersistenceError(f"Settings file {self.path} is not a JSON object")
        return data

    def save(self, data: Mapping[str, Any]):
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(dict(data), indent=2), encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"Failed to save settings to {self.path}: {e}") from e

    def get(self, key: str, default: Any = None) -> Any:
        try:
            return self.load().get(key, default)
        except PersistenceError as e:
            logger.warning(str(e))
            return default

    def set(self, key: str, value: Any):
        try:
            data = self.load()
            data[key] = value
            self.save(data)
        except PersistenceError as e:
            logger.warning(str(e))

    def remove(self):
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(_("Failed to remove settings file: {error}").format(error=e))


def load_settings(
    store: Optional[JSONSettingsStore] = None,
    env: Optional[Mapping[str, str]] = None,
) -> edict:
    """
    Load settings: defaults, then the store, then the environment.

    Failures while reading the store are logged and ignored.
    """
    settings = default_settings()
    if store is not None:
        try:
            settings, _ignored = merge_settings(settings, store.load())
        except PersistenceError as e:
            logger.warning(_("Failed to load settings, using defaults: {error}").format(error=e))
            settings = default_settings()
    if env is None:
        env = os.environ
    overrides = load_cfg_from_env(edict(), dict(env))
    if overrides:
        settings, _ignored = merge_settings(settings, overrides)
    return settings


def save_settings(settings: Mapping[str, Any], store: JSONSettingsStore) -> bool:
    try:
        store.save({k: settings[k] for k in DEFAULT_SETTINGS if k in settings})
    except PersistenceError as e:
        logger.warning(_("Failed to save settings: {error}").format(error=e))
        return False
    return True


def default_settings_filename(day: Optional[date] = None) -> str:
    day = day or date.today()
    return f"image-point-mapper-settings-{day.isoformat()}.json"


def export_settings(settings: Mapping[str, Any], path: Path) -> Path:
    """
    Write settings as a JSON document.

    Raises:
        PersistenceError: If the file cannot be written
    """
    path = Path(path)
    try:
        path.write_text(
            json.dumps({k: settings[k] for k in DEFAULT_SETTINGS if k in settings}, indent=2),
            encoding="utf-8",
        )
    except OSError as e:
        raise PersistenceError(f"Failed to export settings to {path}: {e}") from e
    logger.info(_("Exported settings to {path}").format(path=path))
    return path


def import_settings(settings: Mapping[str, Any], path: Path) -> edict:
    """
    Shallow merge a settings document over ``settings``.

    Raises:
        PersistenceError: If the file cannot be read or is not a JSON object
    """
    path = Path(path)
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise PersistenceError(
            f"Failed to import settings. Invalid file format: {e}"
        ) from e
    if not isinstance(data, dict):
        raise PersistenceError("Failed to import settings. Invalid file format.")
    merged, _ignored = merge_settings(settings, data)
    return merged


def reset_settings(store: Optional[JSONSettingsStore] = None) -> edict:
    """Forget stored settings and return the defaults."""
    if store is not None:
        store.remove()
    return default_settings()
