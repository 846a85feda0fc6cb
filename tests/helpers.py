from __future__ import annotations

import struct
from typing import Sequence


def vlq(value: int) -> bytes:
    buffer = [value & 0x7F]
    value >>= 7
    while value:
        buffer.append((value & 0x7F) | 0x80)
        value >>= 7
    return bytes(reversed(buffer))


def header_chunk(fmt: int = 1, track_count: int = 1, division: int = 96) -> bytes:
    return b"MThd" + struct.pack(">IHHH", 6, fmt, track_count, division)


def track_chunk(track_bytes: bytes) -> bytes:
    return b"MTrk" + struct.pack(">I", len(track_bytes)) + track_bytes


def track(*events: bytes) -> bytes:
    """Concatenate raw ``(delta, status, data...)`` event byte groups."""

    return b"".join(events)


def event(delta: int, *payload: int) -> bytes:
    return vlq(delta) + bytes(payload)


def end_of_track(delta: int = 0) -> bytes:
    return event(delta, 0xFF, 0x2F, 0x00)


def tempo(delta: int, micros_per_quarter: int) -> bytes:
    return event(delta, 0xFF, 0x51, 0x03) + micros_per_quarter.to_bytes(3, "big")


def midi_file(tracks: Sequence[bytes], *, fmt: int | None = None, division: int = 96) -> bytes:
    if fmt is None:
        fmt = 0 if len(tracks) == 1 else 1
    return header_chunk(fmt, len(tracks), division) + b"".join(track_chunk(data) for data in tracks)


def two_track_scenario() -> bytes:
    """Two parallel tracks at 96 ticks per quarter."""

    track_a = track(
        event(0, 0x90, 60, 100),
        event(96, 0x80, 60, 0),
        end_of_track(0),
    )
    track_b = track(
        event(48, 0x91, 64, 90),
        end_of_track(96),
    )
    return midi_file([track_a, track_b], division=96)
