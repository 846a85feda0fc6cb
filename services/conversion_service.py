"""Application service that reads MIDI files and runs the conversion pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Tuple

from midi_tools.converter import ConversionOptions, ConversionResult, convert_midi
from midi_tools.midi_import.errors import MidiError
from midi_tools.midi_import.models import MidiTrackIssue
from shared.result import Result

_LOGGER = logging.getLogger(__name__)

ReadBytesFn = Callable[[Path], bytes]
ConvertFn = Callable[[bytes, ConversionOptions], ConversionResult]


def _read_file_bytes(path: Path) -> bytes:
    return Path(path).read_bytes()


@dataclass(slots=True)
class ConversionService:
    """High-level conversion of MIDI files into output events."""

    read_bytes: ReadBytesFn = _read_file_bytes
    convert: ConvertFn = convert_midi
    last_issues: Tuple[MidiTrackIssue, ...] = field(default_factory=tuple)

    def convert_file(
        self, path: str | Path, options: ConversionOptions | None = None
    ) -> Result[ConversionResult, Exception]:
        options = options or ConversionOptions()
        source = Path(path)
        self.last_issues = ()
        try:
            data = self.read_bytes(source)
        except OSError as exc:
            _LOGGER.error("Failed to read MIDI data from %s: %s", source, exc)
            return Result.err(exc)

        _LOGGER.debug(
            "Converting %s (%d bytes, policy=%s, timestamps=%s, meta=%s)",
            source,
            len(data),
            options.policy.value,
            options.timestamp_mode.value,
            options.include_meta,
        )
        try:
            result = self.convert(data, options)
        except MidiError as exc:
            _LOGGER.error("Failed to convert %s: %s", source, exc)
            return Result.err(exc)

        self.last_issues = result.issues
        if result.issues:
            _LOGGER.warning(
                "Recovered from %d malformed region(s) while converting %s",
                len(result.issues),
                source,
            )
        return Result.ok(result)


__all__ = ["ConversionService"]
