from __future__ import annotations

from itertools import accumulate

import pytest

from midi_tools.midi_import.models import (
    Division,
    EndOfTrack,
    MergedEvent,
    MetaEvent,
    NoteOff,
    NoteOn,
    TimestampMode,
)
from midi_tools.midi_import.timing import TickClock, normalize_timing


def _stream() -> list[MergedEvent]:
    return [
        MergedEvent(0, 0, MetaEvent(subtype=0x03, data=b"Piano")),
        MergedEvent(0, 0, NoteOn(channel=0, key=60, velocity=100)),
        MergedEvent(48, 1, NoteOn(channel=1, key=64, velocity=90)),
        MergedEvent(96, 0, NoteOff(channel=0, key=60, velocity=0)),
        MergedEvent(96, 0, EndOfTrack()),
        MergedEvent(120, 1, MetaEvent(subtype=0x06, data=b"Coda")),
        MergedEvent(144, 1, EndOfTrack()),
    ]


def test_absolute_mode_passes_ticks_through() -> None:
    output = normalize_timing(_stream(), mode=TimestampMode.ABSOLUTE)

    assert [(item.timestamp, item.event.type) for item in output] == [
        (0, "note_on"),
        (48, "note_on"),
        (96, "note_off"),
    ]
    assert [item.track_index for item in output] == [0, 1, 0]


def test_delta_mode_measures_from_previous_emitted_event() -> None:
    output = normalize_timing(_stream(), mode="delta", include_meta=True)

    assert [(item.timestamp, item.event.type) for item in output] == [
        (0, "meta"),
        (0, "note_on"),
        (48, "note_on"),
        (48, "note_off"),
        (24, "meta"),
    ]


@pytest.mark.parametrize("include_meta", [False, True])
def test_delta_prefix_sums_reproduce_absolute_timestamps(include_meta: bool) -> None:
    absolute = normalize_timing(_stream(), mode=TimestampMode.ABSOLUTE, include_meta=include_meta)
    delta = normalize_timing(_stream(), mode=TimestampMode.DELTA, include_meta=include_meta)

    assert list(accumulate(item.timestamp for item in delta)) == [item.timestamp for item in absolute]
    assert all(item.timestamp >= 0 for item in delta)


def test_end_of_track_is_never_emitted() -> None:
    for mode in TimestampMode:
        for include_meta in (False, True):
            output = normalize_timing(_stream(), mode=mode, include_meta=include_meta)
            assert not any(isinstance(item.event, EndOfTrack) for item in output)


def test_clock_uses_default_tempo_until_a_tempo_event() -> None:
    clock = TickClock(Division(ticks_per_quarter=96))

    assert clock.micros_at(96) == 500_000
    tempo_change = MergedEvent(96, 0, MetaEvent(subtype=0x51, data=(250_000).to_bytes(3, "big")))
    assert clock.observe(tempo_change) == 500_000
    assert clock.micros_at(192) == 750_000


def test_tempo_events_apply_even_when_meta_is_excluded() -> None:
    stream = [
        MergedEvent(0, 0, MetaEvent(subtype=0x51, data=(1_000_000).to_bytes(3, "big"))),
        MergedEvent(96, 0, NoteOn(channel=0, key=60, velocity=100)),
        MergedEvent(192, 0, NoteOff(channel=0, key=60, velocity=0)),
    ]

    absolute = normalize_timing(stream, clock=TickClock(Division(ticks_per_quarter=96)))
    delta = normalize_timing(
        stream, mode=TimestampMode.DELTA, clock=TickClock(Division(ticks_per_quarter=96))
    )

    assert [item.micros for item in absolute] == [1_000_000, 2_000_000]
    assert [item.seconds for item in absolute] == [pytest.approx(1.0), pytest.approx(2.0)]
    assert [item.micros for item in delta] == [1_000_000, 1_000_000]


def test_smpte_division_ignores_tempo() -> None:
    clock = TickClock(Division(frames_per_second=25, ticks_per_frame=40))
    stream = [
        MergedEvent(0, 0, MetaEvent(subtype=0x51, data=(1_000_000).to_bytes(3, "big"))),
        MergedEvent(1000, 0, NoteOn(channel=0, key=60, velocity=100)),
    ]

    output = normalize_timing(stream, clock=clock)

    # 25 fps * 40 ticks per frame = 1000 ticks per second.
    assert output[0].micros == 1_000_000


def test_invalid_mode_is_rejected() -> None:
    with pytest.raises(ValueError, match="Unsupported timestamp mode"):
        normalize_timing(_stream(), mode="relative")
