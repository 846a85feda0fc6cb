"""Serialize conversion results into JSON documents."""
from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, TextIO

from .converter import ConversionResult
from .midi_import.models import (
    ChannelPressure,
    ControlChange,
    MetaEvent,
    MidiEvent,
    NoteOff,
    NoteOn,
    OutputEvent,
    PitchBend,
    PolyphonicPressure,
    ProgramChange,
)

META_NAMES = {
    0x00: "sequence_number",
    0x01: "text",
    0x02: "copyright",
    0x03: "track_name",
    0x04: "instrument_name",
    0x05: "lyric",
    0x06: "marker",
    0x07: "cue_point",
    0x08: "program_name",
    0x09: "device_name",
    0x20: "midi_channel",
    0x21: "midi_port",
    0x51: "tempo",
    0x54: "smpte_offset",
    0x58: "time_signature",
    0x59: "key_signature",
    0x7F: "sequencer_specific",
}

_TEXT_SUBTYPES = frozenset(range(0x01, 0x0A))


def meta_name(subtype: int) -> str:
    return META_NAMES.get(subtype, "unknown")


def decode_meta_value(meta: MetaEvent) -> Any:
    """Return a JSON-friendly value for well-formed known meta payloads, else ``None``."""

    data = meta.data
    subtype = meta.subtype
    if subtype in _TEXT_SUBTYPES:
        return data.decode("utf-8", errors="replace")
    if subtype == 0x00 and len(data) == 2:
        return int.from_bytes(data, "big")
    if subtype in (0x20, 0x21) and len(data) == 1:
        return data[0]
    if subtype == 0x51:
        return meta.tempo_micros_per_quarter
    if subtype == 0x54 and len(data) == 5:
        hours, minutes, seconds, frames, subframes = data
        return {
            "hours": hours,
            "minutes": minutes,
            "seconds": seconds,
            "frames": frames,
            "subframes": subframes,
        }
    if subtype == 0x58 and len(data) == 4:
        numerator, denominator_power, clocks, thirty_seconds = data
        return {
            "numerator": numerator,
            "denominator": 2 ** denominator_power,
            "clocks_per_click": clocks,
            "thirty_seconds_per_quarter": thirty_seconds,
        }
    if subtype == 0x59 and len(data) == 2:
        sharps = data[0] - 256 if data[0] > 127 else data[0]
        return {"sharps": sharps, "minor": bool(data[1])}
    return None


def event_fields(event: MidiEvent) -> Dict[str, Any]:
    if isinstance(event, (NoteOn, NoteOff)):
        return {"channel": event.channel, "key": event.key, "velocity": event.velocity}
    if isinstance(event, PolyphonicPressure):
        return {"channel": event.channel, "key": event.key, "pressure": event.pressure}
    if isinstance(event, ControlChange):
        return {"channel": event.channel, "controller": event.controller, "value": event.value}
    if isinstance(event, ProgramChange):
        return {"channel": event.channel, "program": event.program}
    if isinstance(event, ChannelPressure):
        return {"channel": event.channel, "pressure": event.pressure}
    if isinstance(event, PitchBend):
        return {"channel": event.channel, "value": event.value, "bend": event.bend}
    if isinstance(event, MetaEvent):
        fields: Dict[str, Any] = {
            "subtype": event.subtype,
            "name": meta_name(event.subtype),
            "data": list(event.data),
        }
        value = decode_meta_value(event)
        if value is not None:
            fields["value"] = value
        return fields
    raise TypeError(f"Cannot serialize {type(event).__name__} events.")


def event_to_dict(output_event: OutputEvent) -> Dict[str, Any]:
    """Flatten an :class:`OutputEvent` into a JSON-ready mapping."""

    payload: Dict[str, Any] = {
        "timestamp": output_event.timestamp,
        "micros": output_event.micros,
        "seconds": output_event.seconds,
        "track": output_event.track_index,
        "type": output_event.event.type,
    }
    payload.update(event_fields(output_event.event))
    return payload


def build_document(
    result: ConversionResult,
    *,
    source_file: str,
    generator: str | None = None,
    generated: datetime | None = None,
) -> Dict[str, Any]:
    """Wrap converted events in the top-level document envelope."""

    generated_at = generated or datetime.now().astimezone()
    header = result.header
    return {
        "generated": generated_at.isoformat(),
        "generator": generator,
        "source_file": source_file,
        "format": header.format.label,
        "division": header.division.as_dict(),
        "track_count": header.track_count,
        "timestamp_mode": result.options.timestamp_mode.value,
        "events_processed": result.events_processed,
        "events_emitted": result.events_emitted,
        "emitted_meta": result.options.include_meta,
        "events": [event_to_dict(event) for event in result.events],
    }


def write_json(document: Dict[str, Any], handle: TextIO, *, pretty: bool = False, indent: int = 2) -> None:
    if pretty:
        json.dump(document, handle, indent=max(0, int(indent)), ensure_ascii=False)
    else:
        json.dump(document, handle, separators=(",", ":"), ensure_ascii=False)
    handle.write("\n")


def export_json(
    result: ConversionResult,
    handle: TextIO,
    *,
    source_file: str,
    pretty: bool = False,
    indent: int = 2,
    generator: str | None = None,
) -> Dict[str, Any]:
    """Build the document for ``result`` and write it to ``handle``."""

    document = build_document(result, source_file=source_file, generator=generator)
    write_json(document, handle, pretty=pretty, indent=indent)
    return document


__all__ = [
    "META_NAMES",
    "build_document",
    "decode_meta_value",
    "event_fields",
    "event_to_dict",
    "export_json",
    "meta_name",
    "write_json",
]
