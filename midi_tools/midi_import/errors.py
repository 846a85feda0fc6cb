"""Exception hierarchy raised while reading Standard MIDI Files."""
from __future__ import annotations


class MidiError(ValueError):
    """Base class for every failure raised by the MIDI import pipeline."""


class UnexpectedEof(MidiError):
    """A read would run past the end of the available bytes."""


class MalformedVarint(MidiError):
    """A variable-length quantity did not terminate within four bytes."""


class MissingHeader(MidiError):
    """The buffer does not start with an ``MThd`` chunk."""


class InvalidHeaderLength(MidiError):
    """The ``MThd`` chunk declares a length other than six bytes."""


class UnsupportedFormat(MidiError):
    """The header declares a file format other than 0, 1 or 2."""


class TrackCountMismatch(MidiError):
    """Fewer ``MTrk`` chunks were found than the header declares."""

    def __init__(self, declared: int, found: int):
        super().__init__(f"Header declares {declared} track(s) but only {found} were found.")
        self.declared = declared
        self.found = found


class MalformedEvent(MidiError):
    """An event inside a track could not be decoded."""

    def __init__(self, track: int, offset: int, detail: str):
        super().__init__(f"Malformed event in track {track} at byte {offset}: {detail}")
        self.track = track
        self.offset = offset
        self.detail = detail


class UnknownRunningStatus(MalformedEvent):
    """A data byte appeared before any status byte on the track."""


__all__ = [
    "InvalidHeaderLength",
    "MalformedEvent",
    "MalformedVarint",
    "MidiError",
    "MissingHeader",
    "TrackCountMismatch",
    "UnexpectedEof",
    "UnknownRunningStatus",
    "UnsupportedFormat",
]
