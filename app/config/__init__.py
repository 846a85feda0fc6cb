"""Application-wide configuration loaded from JSON resources."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any, Mapping

from midi_tools.midi_import.models import StrictnessPolicy, TimestampMode
from shared.logging_config import LogVerbosity

logger = logging.getLogger(__name__)

_CONFIG_RESOURCE = "app.json"
_CONFIG_ENV = "JSON_MIDI_CONFIG"
_APP_CONFIG_CACHE: AppConfig | None = None

_DEFAULT_INDENT = 2


@dataclass(frozen=True)
class ConversionDefaults:
    """Defaults applied to conversions when no command-line flag overrides them."""

    strictness: StrictnessPolicy = StrictnessPolicy.RELAXED
    timestamp_mode: TimestampMode = TimestampMode.ABSOLUTE
    include_meta: bool = False


@dataclass(frozen=True)
class OutputSettings:
    """JSON formatting preferences."""

    pretty: bool = False
    indent: int = _DEFAULT_INDENT


@dataclass(frozen=True)
class LoggingSettings:
    verbosity: LogVerbosity = LogVerbosity.WARNING


@dataclass(frozen=True)
class AppConfig:
    """Structured configuration values for the converter."""

    conversion: ConversionDefaults
    output: OutputSettings
    logging: LoggingSettings


def get_app_config() -> AppConfig:
    """Return the cached application configuration."""

    global _APP_CONFIG_CACHE
    if _APP_CONFIG_CACHE is None:
        _APP_CONFIG_CACHE = load_app_config()
    return _APP_CONFIG_CACHE


def reset_app_config_cache() -> None:
    """Reset the cached configuration for subsequent reloads."""

    global _APP_CONFIG_CACHE
    _APP_CONFIG_CACHE = None


def load_app_config(path: str | Path | None = None) -> AppConfig:
    """Load configuration from ``path``, ``$JSON_MIDI_CONFIG`` or the bundled resource."""

    data = _read_config_data(path)
    return AppConfig(
        conversion=_parse_conversion_section(data.get("conversion")),
        output=_parse_output_section(data.get("output")),
        logging=_parse_logging_section(data.get("logging")),
    )


def _read_config_data(path: str | Path | None) -> Mapping[str, Any]:
    if path is None:
        env_path = os.environ.get(_CONFIG_ENV)
        if env_path:
            path = env_path
    if path is not None:
        return _load_json_from_path(Path(path).expanduser())
    return _load_default_config_data()


def _load_json_from_path(path: Path) -> Mapping[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        logger.warning("Could not read configuration file %s (%s); using defaults", path, exc)
        return {}
    return _parse_json(raw)


def _load_default_config_data() -> Mapping[str, Any]:
    try:
        resource = resources.files(__package__).joinpath(_CONFIG_RESOURCE)
        raw = resource.read_text(encoding="utf-8")
    except (FileNotFoundError, OSError):
        return {}
    return _parse_json(raw)


def _parse_json(raw: str) -> Mapping[str, Any]:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return {}
    if isinstance(parsed, Mapping):
        return parsed
    return {}


def _parse_conversion_section(section: Any) -> ConversionDefaults:
    if not isinstance(section, Mapping):
        return ConversionDefaults()
    defaults = ConversionDefaults()
    return ConversionDefaults(
        strictness=_coerce_enum(section.get("strictness"), StrictnessPolicy, defaults.strictness),
        timestamp_mode=_coerce_enum(
            section.get("timestamp_mode"), TimestampMode, defaults.timestamp_mode
        ),
        include_meta=_coerce_bool(section.get("include_meta"), default=defaults.include_meta),
    )


def _parse_output_section(section: Any) -> OutputSettings:
    if not isinstance(section, Mapping):
        return OutputSettings()
    return OutputSettings(
        pretty=_coerce_bool(section.get("pretty"), default=False),
        indent=_coerce_non_negative_int(section.get("indent"), default=_DEFAULT_INDENT),
    )


def _parse_logging_section(section: Any) -> LoggingSettings:
    if not isinstance(section, Mapping):
        return LoggingSettings()
    return LoggingSettings(
        verbosity=_coerce_enum(section.get("verbosity"), LogVerbosity, LogVerbosity.WARNING)
    )


def _coerce_enum(value: Any, enum_type: type, default: Any) -> Any:
    if not isinstance(value, str):
        return default
    try:
        return enum_type(value.strip().lower())
    except ValueError:
        return default


def _coerce_bool(value: Any, *, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1", "on"}:
            return True
        if lowered in {"false", "no", "0", "off"}:
            return False
    return default


def _coerce_non_negative_int(value: Any, *, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        if isinstance(value, (int, float)):
            candidate = int(value)
        elif isinstance(value, str):
            candidate = int(float(value))
        else:
            return default
    except (OverflowError, ValueError):
        return default
    if candidate < 0:
        return default
    return candidate


__all__ = [
    "AppConfig",
    "ConversionDefaults",
    "LoggingSettings",
    "OutputSettings",
    "get_app_config",
    "load_app_config",
    "reset_app_config_cache",
]
