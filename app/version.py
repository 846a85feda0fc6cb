"""Application version helpers."""

from __future__ import annotations

from functools import lru_cache
import os
from importlib import resources

from packaging.version import InvalidVersion, Version

_FALLBACK_VERSION = "0.0.0.dev0"
_VERSION_ENV = "JSON_MIDI_VERSION"


def _read_version_file() -> str | None:
    try:
        text = resources.files(__package__).joinpath("VERSION").read_text(encoding="utf-8")
    except (ModuleNotFoundError, OSError):
        return None
    version = text.strip()
    return version or None


def _version_from_env() -> str | None:
    env_version = os.environ.get(_VERSION_ENV)
    if not env_version:
        return None
    return env_version.strip() or None


def normalize_version(raw_version: str) -> str:
    """Return the canonical PEP 440 form of ``raw_version`` when it parses."""

    version = raw_version.strip()
    if version.startswith("v"):
        version = version[1:]
    try:
        return str(Version(version))
    except InvalidVersion:
        return version


@lru_cache(maxsize=1)
def get_app_version() -> str:
    """Return the application version.

    The order of precedence is:
    1. The ``JSON_MIDI_VERSION`` environment variable.
    2. Embedded ``VERSION`` file packaged with the app.
    3. A fallback development version string.
    """

    for resolver in (_version_from_env, _read_version_file):
        version = resolver()
        if version:
            return normalize_version(version)
    return _FALLBACK_VERSION


__all__ = ["get_app_version", "normalize_version"]
