"""Public facade for MIDI import helpers."""

from .errors import (
    InvalidHeaderLength,
    MalformedEvent,
    MalformedVarint,
    MidiError,
    MissingHeader,
    TrackCountMismatch,
    UnexpectedEof,
    UnknownRunningStatus,
    UnsupportedFormat,
)
from .models import (
    ChannelPressure,
    ControlChange,
    DecodedTrack,
    Division,
    EndOfTrack,
    MergedEvent,
    MetaEvent,
    MidiFormat,
    MidiHeader,
    MidiTrackIssue,
    NoteOff,
    NoteOn,
    OutputEvent,
    PitchBend,
    PolyphonicPressure,
    ProgramChange,
    RawMidiFile,
    RawTrack,
    StrictnessPolicy,
    TimedEvent,
    TimestampMode,
)
from .decoders import LenientMidiDecoder, StrictMidiDecoder, decode_track
from .merge import merge_tracks
from .reader import parse_midi_file
from .streams import SafeStream
from .timing import TickClock, normalize_timing

__all__ = [
    "ChannelPressure",
    "ControlChange",
    "DecodedTrack",
    "Division",
    "EndOfTrack",
    "InvalidHeaderLength",
    "LenientMidiDecoder",
    "MalformedEvent",
    "MalformedVarint",
    "MergedEvent",
    "MetaEvent",
    "MidiError",
    "MidiFormat",
    "MidiHeader",
    "MidiTrackIssue",
    "MissingHeader",
    "NoteOff",
    "NoteOn",
    "OutputEvent",
    "PitchBend",
    "PolyphonicPressure",
    "ProgramChange",
    "RawMidiFile",
    "RawTrack",
    "SafeStream",
    "StrictMidiDecoder",
    "StrictnessPolicy",
    "TickClock",
    "TimedEvent",
    "TimestampMode",
    "TrackCountMismatch",
    "UnexpectedEof",
    "UnknownRunningStatus",
    "UnsupportedFormat",
    "decode_track",
    "merge_tracks",
    "normalize_timing",
    "parse_midi_file",
]
