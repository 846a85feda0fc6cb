from __future__ import annotations

from importlib import resources
from types import SimpleNamespace

from app.version import get_app_version, normalize_version


def _reset_cache() -> None:
    get_app_version.cache_clear()  # type: ignore[attr-defined]


def test_get_app_version_prefers_environment(monkeypatch) -> None:
    monkeypatch.setenv("JSON_MIDI_VERSION", "v1.2.3")
    _reset_cache()

    assert get_app_version() == "1.2.3"
    _reset_cache()


def test_get_app_version_falls_back_to_version_file(monkeypatch) -> None:
    monkeypatch.delenv("JSON_MIDI_VERSION", raising=False)
    _reset_cache()

    version_file = resources.files("app").joinpath("VERSION")
    expected = version_file.read_text(encoding="utf-8").strip()
    assert expected
    assert get_app_version() == normalize_version(expected)


def test_normalize_version_canonicalizes_pep440() -> None:
    assert normalize_version("v2.0.0-rc1") == "2.0.0rc1"
    assert normalize_version(" 1.0 ") == "1.0"
    assert normalize_version("nightly") == "nightly"


def test_unreadable_version_resource_uses_fallback(monkeypatch) -> None:
    def _files(package: str):
        raise NotADirectoryError(package)

    monkeypatch.delenv("JSON_MIDI_VERSION", raising=False)
    monkeypatch.setattr("app.version.resources", SimpleNamespace(files=_files))
    _reset_cache()

    assert get_app_version() == "0.0.0.dev0"
    _reset_cache()
