from .converter import ConversionOptions, ConversionResult, convert_midi
from .exporters import build_document, event_to_dict, export_json, write_json
from .midi_import import (
    MidiError,
    StrictnessPolicy,
    TimestampMode,
    merge_tracks,
    normalize_timing,
    parse_midi_file,
)

__all__ = [
    "ConversionOptions",
    "ConversionResult",
    "MidiError",
    "StrictnessPolicy",
    "TimestampMode",
    "build_document",
    "convert_midi",
    "event_to_dict",
    "export_json",
    "merge_tracks",
    "normalize_timing",
    "parse_midi_file",
    "write_json",
]
