"""Convert the merged absolute-tick stream into presentation timestamps."""
from __future__ import annotations

from typing import Iterable, List

from .models import (
    DEFAULT_MICROS_PER_QUARTER,
    Division,
    EndOfTrack,
    MergedEvent,
    MetaEvent,
    OutputEvent,
    TimestampMode,
)

MICROS_PER_SECOND = 1_000_000


class TickClock:
    """Track wall-clock time for a non-decreasing sequence of ticks.

    Metrical divisions follow tempo meta events as they are observed; SMPTE
    divisions use a fixed tick length and ignore tempo.
    """

    def __init__(self, division: Division | None = None):
        self.division = division or Division(ticks_per_quarter=96)
        self.micros_per_quarter = DEFAULT_MICROS_PER_QUARTER
        self._anchor_tick = 0
        self._anchor_micros = 0

    @property
    def ticks_per_quarter(self) -> int:
        return max(1, int(self.division.ticks_per_quarter or 0))

    def micros_at(self, tick: int) -> int:
        if self.division.is_smpte:
            ticks_per_second = max(
                1, int(self.division.frames_per_second or 0) * int(self.division.ticks_per_frame or 0)
            )
            return tick * MICROS_PER_SECOND // ticks_per_second
        elapsed = max(0, tick - self._anchor_tick)
        return self._anchor_micros + elapsed * self.micros_per_quarter // self.ticks_per_quarter

    def observe(self, event: MergedEvent) -> int:
        """Return the absolute microseconds of ``event`` and apply tempo changes."""

        micros = self.micros_at(event.tick)
        if isinstance(event.event, MetaEvent):
            tempo = event.event.tempo_micros_per_quarter
            if tempo and not self.division.is_smpte:
                self._anchor_tick = event.tick
                self._anchor_micros = micros
                self.micros_per_quarter = tempo
        return micros


def normalize_timing(
    merged: Iterable[MergedEvent],
    *,
    mode: TimestampMode | str = TimestampMode.ABSOLUTE,
    include_meta: bool = False,
    clock: TickClock | None = None,
) -> List[OutputEvent]:
    """Produce output events with absolute or delta timestamps.

    End-of-track markers are always dropped and meta events are dropped
    unless ``include_meta`` is set. Delta timestamps are measured from the
    previously emitted event, starting at zero.
    """

    mode = TimestampMode.parse(mode)
    clock = clock or TickClock()
    previous_tick = 0
    previous_micros = 0
    output: List[OutputEvent] = []

    for merged_event in merged:
        micros = clock.observe(merged_event)
        event = merged_event.event
        if isinstance(event, EndOfTrack):
            continue
        if isinstance(event, MetaEvent) and not include_meta:
            continue

        if mode is TimestampMode.DELTA:
            timestamp = merged_event.tick - previous_tick
            micros_value = micros - previous_micros
        else:
            timestamp = merged_event.tick
            micros_value = micros
        previous_tick = merged_event.tick
        previous_micros = micros
        output.append(
            OutputEvent(
                timestamp=timestamp,
                event=event,
                track_index=merged_event.track_index,
                micros=micros_value,
            )
        )
    return output


__all__ = ["MICROS_PER_SECOND", "TickClock", "normalize_timing"]
