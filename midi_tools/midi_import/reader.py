"""Container parsing: the ``MThd`` header chunk and ``MTrk`` track spans."""
from __future__ import annotations

import logging
from typing import List

from .errors import InvalidHeaderLength, MissingHeader, TrackCountMismatch, UnsupportedFormat
from .models import Division, MidiFormat, MidiHeader, RawMidiFile, RawTrack, StrictnessPolicy
from .streams import SafeStream

logger = logging.getLogger(__name__)

HEADER_TAG = b"MThd"
TRACK_TAG = b"MTrk"
HEADER_LENGTH = 6
CHUNK_PREFIX_LENGTH = 8


def read_chunk(stream: SafeStream) -> tuple[bytes, int, bytes]:
    """Read a chunk from ``stream``, returning its tag, payload offset and payload."""

    chunk_type = stream.read_exact(4)
    length = stream.read_u32()
    offset = stream.tell()
    payload = stream.read_exact(length)
    return chunk_type, offset, payload


def read_header(stream: SafeStream) -> MidiHeader:
    if stream.remaining < 4 or stream.read_exact(4) != HEADER_TAG:
        raise MissingHeader("MIDI data does not start with an MThd header chunk.")
    length = stream.read_u32()
    if length != HEADER_LENGTH:
        raise InvalidHeaderLength(f"MThd chunk length is {length}, expected {HEADER_LENGTH}.")
    raw_format = stream.read_u16()
    track_count = stream.read_u16()
    division = Division.from_raw(stream.read_u16())
    try:
        file_format = MidiFormat(raw_format)
    except ValueError as exc:
        raise UnsupportedFormat(f"Unsupported MIDI file format {raw_format}.") from exc
    return MidiHeader(format=file_format, track_count=track_count, division=division)


def parse_midi_file(
    data: bytes, *, policy: StrictnessPolicy | str = StrictnessPolicy.RELAXED
) -> RawMidiFile:
    """Split ``data`` into header fields and raw track spans.

    Container errors are fatal under both policies; the policy only decides
    whether a missing ``MTrk`` chunk aborts the read.
    """

    policy = StrictnessPolicy.parse(policy)
    stream = SafeStream(data)
    header = read_header(stream)

    tracks: List[RawTrack] = []
    while stream.remaining > 0:
        if stream.remaining < CHUNK_PREFIX_LENGTH and len(tracks) >= header.track_count:
            logger.debug("Ignoring %d trailing byte(s) after the last chunk", stream.remaining)
            break
        chunk_start = stream.tell()
        chunk_type, offset, payload = read_chunk(stream)
        if chunk_type != TRACK_TAG:
            logger.debug(
                "Skipping unknown chunk %r (%d bytes) at offset %d",
                chunk_type,
                len(payload),
                chunk_start,
            )
            continue
        tracks.append(RawTrack(index=len(tracks), offset=offset, data=payload))

    if len(tracks) < header.track_count:
        if policy is StrictnessPolicy.STRICT:
            raise TrackCountMismatch(header.track_count, len(tracks))
        logger.warning(
            "Header declares %d track(s) but only %d were found; continuing",
            header.track_count,
            len(tracks),
        )
    elif len(tracks) > header.track_count:
        logger.debug(
            "Found %d track chunk(s), more than the %d declared",
            len(tracks),
            header.track_count,
        )

    return RawMidiFile(header=header, tracks=tuple(tracks))


__all__ = ["parse_midi_file", "read_chunk", "read_header"]
