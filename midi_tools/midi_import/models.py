"""Data models for decoded MIDI files, events and conversion output."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import ClassVar, Tuple, Union

from .errors import MidiError

DEFAULT_MICROS_PER_QUARTER = 500_000
END_OF_TRACK_SUBTYPE = 0x2F
TEMPO_SUBTYPE = 0x51


class MidiFormat(IntEnum):
    """Track layout declared by the ``MThd`` chunk."""

    SINGLE_TRACK = 0
    MULTI_TRACK_SYNC = 1
    MULTI_TRACK_ASYNC = 2

    @property
    def label(self) -> str:
        return self.name.lower()


class StrictnessPolicy(str, Enum):
    """How the decoder reacts to malformed track data."""

    STRICT = "strict"
    RELAXED = "relaxed"

    @classmethod
    def parse(cls, value: "StrictnessPolicy | str") -> "StrictnessPolicy":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ValueError(f"Unsupported strictness policy: {value}") from exc


class TimestampMode(str, Enum):
    """Whether output timestamps are absolute or relative to the previous event."""

    ABSOLUTE = "absolute"
    DELTA = "delta"

    @classmethod
    def parse(cls, value: "TimestampMode | str") -> "TimestampMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ValueError(f"Unsupported timestamp mode: {value}") from exc


@dataclass(frozen=True)
class Division:
    """Header time division: metrical ticks per quarter or SMPTE timecode."""

    ticks_per_quarter: int | None = None
    frames_per_second: int | None = None
    ticks_per_frame: int | None = None

    @classmethod
    def from_raw(cls, raw: int) -> "Division":
        if raw & 0x8000:
            # Upper byte holds the negated frame rate in two's complement.
            fps = 256 - (raw >> 8)
            return cls(frames_per_second=fps, ticks_per_frame=raw & 0xFF)
        return cls(ticks_per_quarter=raw & 0x7FFF)

    @property
    def is_smpte(self) -> bool:
        return self.frames_per_second is not None

    def as_dict(self) -> dict[str, int | str | None]:
        if self.is_smpte:
            return {
                "kind": "smpte",
                "frames_per_second": self.frames_per_second,
                "ticks_per_frame": self.ticks_per_frame,
            }
        return {"kind": "metrical", "ticks_per_quarter": self.ticks_per_quarter}


@dataclass(frozen=True)
class RawTrack:
    """Byte span of one ``MTrk`` chunk and its position in the file."""

    index: int
    offset: int
    data: bytes


@dataclass(frozen=True)
class MidiHeader:
    format: MidiFormat
    track_count: int
    division: Division


@dataclass(frozen=True)
class RawMidiFile:
    """Parsed container structure: header fields plus raw track spans."""

    header: MidiHeader
    tracks: Tuple[RawTrack, ...]

    @property
    def format(self) -> MidiFormat:
        return self.header.format

    @property
    def division(self) -> Division:
        return self.header.division


@dataclass(frozen=True)
class NoteOff:
    type: ClassVar[str] = "note_off"

    channel: int
    key: int
    velocity: int


@dataclass(frozen=True)
class NoteOn:
    type: ClassVar[str] = "note_on"

    channel: int
    key: int
    velocity: int


@dataclass(frozen=True)
class PolyphonicPressure:
    type: ClassVar[str] = "polyphonic_pressure"

    channel: int
    key: int
    pressure: int


@dataclass(frozen=True)
class ControlChange:
    type: ClassVar[str] = "control_change"

    channel: int
    controller: int
    value: int


@dataclass(frozen=True)
class ProgramChange:
    type: ClassVar[str] = "program_change"

    channel: int
    program: int


@dataclass(frozen=True)
class ChannelPressure:
    type: ClassVar[str] = "channel_pressure"

    channel: int
    pressure: int


@dataclass(frozen=True)
class PitchBend:
    """Pitch wheel change; ``value`` is the raw 14-bit amount (centre 8192)."""

    type: ClassVar[str] = "pitch_bend"

    channel: int
    value: int

    @property
    def bend(self) -> int:
        return self.value - 0x2000


@dataclass(frozen=True)
class MetaEvent:
    """Meta event carrying its raw subtype and payload bytes."""

    type: ClassVar[str] = "meta"

    subtype: int
    data: bytes = b""

    @property
    def tempo_micros_per_quarter(self) -> int | None:
        if self.subtype != TEMPO_SUBTYPE or len(self.data) != 3:
            return None
        return int.from_bytes(self.data, "big")


@dataclass(frozen=True)
class EndOfTrack:
    type: ClassVar[str] = "end_of_track"


ChannelEvent = Union[
    NoteOff,
    NoteOn,
    PolyphonicPressure,
    ControlChange,
    ProgramChange,
    ChannelPressure,
    PitchBend,
]
MidiEvent = Union[ChannelEvent, MetaEvent, EndOfTrack]


@dataclass(frozen=True)
class TimedEvent:
    """Event paired with its track-local absolute tick."""

    tick: int
    event: MidiEvent


@dataclass(frozen=True)
class MidiTrackIssue:
    """Represents a problem recovered from while decoding a specific track."""

    track_index: int
    offset: int
    tick: int
    detail: str


@dataclass(frozen=True)
class DecodedTrack:
    """Decoded events and recovered issues for a single MIDI track."""

    index: int
    events: Tuple[TimedEvent, ...]
    issues: Tuple[MidiTrackIssue, ...] = ()
    reached_end_of_track: bool = False
    sysex_count: int = 0


@dataclass(frozen=True)
class DecodeStep:
    """Outcome of decoding one event: decoded, skipped or fatal."""

    DECODED: ClassVar[str] = "decoded"
    SKIPPED: ClassVar[str] = "skipped"
    FATAL: ClassVar[str] = "fatal"

    kind: str
    event: TimedEvent | None = None
    error: MidiError | None = None

    @classmethod
    def decoded(cls, event: TimedEvent) -> "DecodeStep":
        return cls(kind=cls.DECODED, event=event)

    @classmethod
    def skipped(cls) -> "DecodeStep":
        return cls(kind=cls.SKIPPED)

    @classmethod
    def fatal(cls, error: MidiError) -> "DecodeStep":
        return cls(kind=cls.FATAL, error=error)


@dataclass(frozen=True, order=True)
class MergedEvent:
    """Event placed on the global timeline of the merged stream."""

    tick: int
    track_index: int
    event: MidiEvent = field(compare=False)


@dataclass(frozen=True)
class OutputEvent:
    """Final event handed to serialization with its presentation timestamp."""

    timestamp: int
    event: MidiEvent
    track_index: int
    micros: int = 0

    @property
    def seconds(self) -> float:
        return self.micros / 1_000_000.0


__all__ = [
    "ChannelEvent",
    "ChannelPressure",
    "ControlChange",
    "DEFAULT_MICROS_PER_QUARTER",
    "DecodeStep",
    "DecodedTrack",
    "Division",
    "END_OF_TRACK_SUBTYPE",
    "EndOfTrack",
    "MergedEvent",
    "MetaEvent",
    "MidiEvent",
    "MidiFormat",
    "MidiHeader",
    "MidiTrackIssue",
    "NoteOff",
    "NoteOn",
    "OutputEvent",
    "PitchBend",
    "PolyphonicPressure",
    "ProgramChange",
    "RawMidiFile",
    "RawTrack",
    "StrictnessPolicy",
    "TEMPO_SUBTYPE",
    "TimedEvent",
    "TimestampMode",
]
