"""Merge per-track event sequences into one global timeline."""
from __future__ import annotations

import heapq
from typing import Iterable, Iterator, List, Sequence, Tuple

from .models import DecodedTrack, EndOfTrack, MergedEvent, TimedEvent


def truncate_at_end_of_track(events: Iterable[TimedEvent]) -> List[TimedEvent]:
    """Return ``events`` up to and including the first end-of-track marker."""

    kept: List[TimedEvent] = []
    for timed in events:
        kept.append(timed)
        if isinstance(timed.event, EndOfTrack):
            break
    return kept


def merge_tracks(tracks: Sequence[DecodedTrack] | Sequence[Sequence[TimedEvent]]) -> List[MergedEvent]:
    """Merge tracks by absolute tick; ties go to the lower track index.

    Only one pending event per track sits in the heap at a time, so events
    from the same track keep their original order.
    """

    iterators: List[Iterator[TimedEvent]] = []
    for track in tracks:
        events = track.events if isinstance(track, DecodedTrack) else track
        iterators.append(iter(truncate_at_end_of_track(events)))

    heap: List[Tuple[int, int, TimedEvent]] = []
    for index, iterator in enumerate(iterators):
        first = next(iterator, None)
        if first is not None:
            heap.append((first.tick, index, first))
    heapq.heapify(heap)

    merged: List[MergedEvent] = []
    while heap:
        tick, index, timed = heapq.heappop(heap)
        merged.append(MergedEvent(tick=tick, track_index=index, event=timed.event))
        following = next(iterators[index], None)
        if following is not None:
            heapq.heappush(heap, (following.tick, index, following))
    return merged


__all__ = ["merge_tracks", "truncate_at_end_of_track"]
