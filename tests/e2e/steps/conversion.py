from __future__ import annotations

import io
import json
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pytest
from pytest_bdd import given, parsers, then, when

from app import cli
from shared import logging_config

from tests.helpers import event, midi_file, track, two_track_scenario


@dataclass
class CliRun:
    exit_code: int
    stdout: str

    @property
    def document(self) -> dict[str, Any]:
        return json.loads(self.stdout)


@pytest.fixture
def midi_workspace(tmp_path: Path, monkeypatch) -> Path:
    monkeypatch.delenv("JSON_MIDI_CONFIG", raising=False)
    monkeypatch.delenv("JSON_MIDI_LOG_FILE", raising=False)
    logging_config._reset_for_tests()
    yield tmp_path
    logging_config._reset_for_tests()


@given(parsers.parse('the two-track MIDI file "{name}"'))
def two_track_midi_file(midi_workspace: Path, name: str) -> None:
    (midi_workspace / name).write_bytes(two_track_scenario())


@given(parsers.parse('a MIDI file "{name}" with the track name "{title}"'))
def named_midi_file(midi_workspace: Path, name: str, title: str) -> None:
    encoded = title.encode("utf-8")
    data = midi_file(
        [
            track(
                event(0, 0xFF, 0x03, len(encoded)) + encoded,
                event(0, 0x90, 60, 100),
                event(96, 0xFF, 0x2F, 0x00),
            )
        ]
    )
    (midi_workspace / name).write_bytes(data)


@given(parsers.parse('a MIDI file "{name}" whose final event is truncated'))
def truncated_midi_file(midi_workspace: Path, name: str) -> None:
    data = midi_file(
        [track(event(0, 0x90, 60, 100), event(96, 0x80, 60, 0), event(10, 0x90, 62))]
    )
    (midi_workspace / name).write_bytes(data)


def _run(workspace: Path, name: str, options: str = "") -> CliRun:
    stdout = io.StringIO()
    argv = [str(workspace / name), "--quiet", *shlex.split(options)]
    exit_code = cli.main(argv, stdout=stdout)
    return CliRun(exit_code=exit_code, stdout=stdout.getvalue())


@when(parsers.re(r'I convert "(?P<name>[^"]+)"$'), target_fixture="cli_run")
def convert_without_options(midi_workspace: Path, name: str) -> CliRun:
    return _run(midi_workspace, name)


@when(
    parsers.re(r'I convert "(?P<name>[^"]+)" with options "(?P<options>[^"]*)"$'),
    target_fixture="cli_run",
)
def convert_with_options(midi_workspace: Path, name: str, options: str) -> CliRun:
    return _run(midi_workspace, name, options)


@then("the conversion succeeds")
def conversion_succeeded(cli_run: CliRun) -> None:
    assert cli_run.exit_code == cli.EXIT_OK, "Expected the conversion to succeed"
    assert cli_run.document["events_emitted"] == len(cli_run.document["events"])


@then("the conversion fails")
def conversion_failed(cli_run: CliRun) -> None:
    assert cli_run.exit_code == cli.EXIT_FAILURE
    assert cli_run.stdout == ""


@then(parsers.parse('the emitted timestamps are "{timestamps}"'))
def emitted_timestamps(cli_run: CliRun, timestamps: str) -> None:
    expected = [int(value) for value in timestamps.split(",")]
    assert [item["timestamp"] for item in cli_run.document["events"]] == expected


@then(parsers.parse('the emitted event types are "{types}"'))
def emitted_types(cli_run: CliRun, types: str) -> None:
    assert [item["type"] for item in cli_run.document["events"]] == types.split(",")


@then("the document reports emitted meta events")
def meta_reported(cli_run: CliRun) -> None:
    document = cli_run.document
    assert document["emitted_meta"] is True
    assert document["events"][0]["name"] == "track_name"
    assert document["events"][0]["value"] == "Lead"
