"""End-to-end conversion of Standard MIDI File bytes into output events."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Tuple

from .midi_import.decoders import decode_track
from .midi_import.merge import merge_tracks
from .midi_import.models import (
    EndOfTrack,
    MidiHeader,
    MidiTrackIssue,
    OutputEvent,
    StrictnessPolicy,
    TimestampMode,
)
from .midi_import.reader import parse_midi_file
from .midi_import.timing import TickClock, normalize_timing

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversionOptions:
    """Presentation and strictness choices for a single conversion."""

    timestamp_mode: TimestampMode = TimestampMode.ABSOLUTE
    include_meta: bool = False
    policy: StrictnessPolicy = StrictnessPolicy.RELAXED

    def __post_init__(self) -> None:
        object.__setattr__(self, "timestamp_mode", TimestampMode.parse(self.timestamp_mode))
        object.__setattr__(self, "policy", StrictnessPolicy.parse(self.policy))


@dataclass(frozen=True)
class ConversionResult:
    """Fully merged and normalized events for one MIDI file."""

    header: MidiHeader
    events: Tuple[OutputEvent, ...]
    events_processed: int
    options: ConversionOptions = field(default_factory=ConversionOptions)
    issues: Tuple[MidiTrackIssue, ...] = ()

    @property
    def events_emitted(self) -> int:
        return len(self.events)


def convert_midi(data: bytes, options: ConversionOptions | None = None) -> ConversionResult:
    """Run the full pipeline over ``data``.

    Raises :class:`~midi_tools.midi_import.errors.MidiError` on container
    corruption, and on malformed events when the policy is strict.
    """

    options = options or ConversionOptions()
    raw = parse_midi_file(data, policy=options.policy)
    logger.debug(
        "Parsed MIDI header: format=%s tracks=%d division=%s",
        raw.format.label,
        len(raw.tracks),
        raw.division,
    )

    decoded = [decode_track(track, policy=options.policy) for track in raw.tracks]
    issues = tuple(
        sorted(
            (issue for track in decoded for issue in track.issues),
            key=lambda issue: (issue.track_index, issue.offset, issue.tick, issue.detail),
        )
    )
    for issue in issues:
        logger.warning(
            "Track %d: skipped malformed data at byte %d (tick %d): %s",
            issue.track_index,
            issue.offset,
            issue.tick,
            issue.detail,
        )

    merged = merge_tracks(decoded)
    processed = sum(1 for item in merged if not isinstance(item.event, EndOfTrack))
    processed += sum(track.sysex_count for track in decoded)
    events = normalize_timing(
        merged,
        mode=options.timestamp_mode,
        include_meta=options.include_meta,
        clock=TickClock(raw.division),
    )
    logger.info("Converted %d merged event(s) into %d output event(s)", len(merged), len(events))
    return ConversionResult(
        header=raw.header,
        events=tuple(events),
        events_processed=processed,
        options=options,
        issues=issues,
    )


__all__ = ["ConversionOptions", "ConversionResult", "convert_midi"]
