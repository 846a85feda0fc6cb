"""MIDI track decoding logic with strict and lenient strategies."""
from __future__ import annotations

import logging
from typing import ClassVar, List, Type

from .errors import MalformedEvent, MidiError, UnknownRunningStatus
from .models import (
    END_OF_TRACK_SUBTYPE,
    ChannelEvent,
    ChannelPressure,
    ControlChange,
    DecodedTrack,
    DecodeStep,
    EndOfTrack,
    MetaEvent,
    MidiTrackIssue,
    NoteOff,
    NoteOn,
    PitchBend,
    PolyphonicPressure,
    ProgramChange,
    RawTrack,
    StrictnessPolicy,
    TimedEvent,
)
from .streams import SafeStream

logger = logging.getLogger(__name__)

_EVENT_NAMES = {
    0x80: "note-off",
    0x90: "note-on",
    0xA0: "polyphonic pressure",
    0xB0: "control change",
    0xC0: "program change",
    0xD0: "channel pressure",
    0xE0: "pitch bend",
}


def channel_data_length(status: int) -> int:
    return 1 if status & 0xF0 in (0xC0, 0xD0) else 2


def build_channel_event(status: int, data: bytes) -> ChannelEvent:
    event_type = status & 0xF0
    channel = status & 0x0F
    if event_type == 0x80:
        return NoteOff(channel=channel, key=data[0], velocity=data[1])
    if event_type == 0x90:
        return NoteOn(channel=channel, key=data[0], velocity=data[1])
    if event_type == 0xA0:
        return PolyphonicPressure(channel=channel, key=data[0], pressure=data[1])
    if event_type == 0xB0:
        return ControlChange(channel=channel, controller=data[0], value=data[1])
    if event_type == 0xC0:
        return ProgramChange(channel=channel, program=data[0])
    if event_type == 0xD0:
        return ChannelPressure(channel=channel, pressure=data[0])
    if event_type == 0xE0:
        return PitchBend(channel=channel, value=data[0] | (data[1] << 7))
    raise ValueError(f"Status byte 0x{status:02X} is not a channel event.")


class _TrackDecoder:
    """Decode one track span into track-local absolute-tick events.

    Each call to :meth:`_step` consumes at most one event and reports what
    happened as a :class:`DecodeStep`; :attr:`policy` decides whether a fatal
    step raises or is recorded and skipped.
    """

    policy: ClassVar[StrictnessPolicy] = StrictnessPolicy.RELAXED

    def __init__(self, track: RawTrack):
        self.track = track
        self.stream = SafeStream(track.data)
        self.tick = 0
        self.running_status: int | None = None
        self.events: List[TimedEvent] = []
        self._issues: List[MidiTrackIssue] = []
        self._reached_eot = False
        self._sysex_count = 0

    @classmethod
    def decode(cls, track: RawTrack) -> DecodedTrack:
        decoder = cls(track)
        return decoder._decode()

    def _decode(self) -> DecodedTrack:
        stream = self.stream
        while stream.remaining > 0 and not self._reached_eot:
            step = self._step()
            if step.kind == DecodeStep.DECODED:
                assert step.event is not None
                self.events.append(step.event)
                if isinstance(step.event.event, EndOfTrack):
                    self._reached_eot = True
            elif step.kind == DecodeStep.FATAL:
                assert step.error is not None
                self._handle_fatal(step.error)

        if not self._reached_eot:
            logger.debug("Track %d ended without an end-of-track event", self.track.index)

        return DecodedTrack(
            index=self.track.index,
            events=tuple(self.events),
            issues=tuple(self._issues),
            reached_end_of_track=self._reached_eot,
            sysex_count=self._sysex_count,
        )

    def _handle_fatal(self, error: MidiError) -> None:
        if self.policy is StrictnessPolicy.STRICT:
            raise error
        self._resync(error)

    def _resync(self, error: MidiError) -> None:
        offset = getattr(error, "offset", self.track.offset + self.stream.tell())
        detail = getattr(error, "detail", str(error))
        self._issues.append(
            MidiTrackIssue(
                track_index=self.track.index,
                offset=int(offset),
                tick=int(self.tick),
                detail=detail,
            )
        )
        logger.debug("Track %d: skipped malformed event at byte %d: %s", self.track.index, offset, detail)
        # Resume one byte past the start of the offending event.
        local = int(offset) - self.track.offset + 1
        self.stream.seek(min(max(local, 0), len(self.stream)))

    def _malformed(self, local_offset: int, detail: str) -> MalformedEvent:
        return MalformedEvent(self.track.index, self.track.offset + local_offset, detail)

    def _step(self) -> DecodeStep:
        stream = self.stream
        delta_offset = stream.tell()
        try:
            delta = stream.read_varlen()
        except MidiError as exc:
            return DecodeStep.fatal(self._malformed(delta_offset, f"Malformed delta-time ({exc})"))
        self.tick += delta
        if stream.remaining <= 0:
            return DecodeStep.skipped()

        status_offset = stream.tell()
        status = stream.peek_u8()
        if status & 0x80:
            stream.read_u8()
        else:
            if self.running_status is None:
                return DecodeStep.fatal(
                    UnknownRunningStatus(
                        self.track.index,
                        self.track.offset + status_offset,
                        f"Data byte 0x{status:02X} without running status",
                    )
                )
            status = self.running_status

        if status == 0xFF:
            return self._parse_meta(status_offset)
        if status in (0xF0, 0xF7):
            return self._parse_sysex(status, status_offset)
        if 0x80 <= status < 0xF0:
            self.running_status = status
            return self._parse_channel_event(status, status_offset)
        return DecodeStep.fatal(
            self._malformed(status_offset, f"Invalid status byte 0x{status:02X}")
        )

    def _parse_channel_event(self, status: int, status_offset: int) -> DecodeStep:
        stream = self.stream
        length = channel_data_length(status)
        name = _EVENT_NAMES[status & 0xF0]
        if stream.remaining < length:
            return DecodeStep.fatal(self._malformed(status_offset, f"Truncated {name} event"))
        data = stream.read_exact(length)
        for value in data:
            if value & 0x80:
                return DecodeStep.fatal(
                    self._malformed(status_offset, f"Invalid data byte 0x{value:02X} in {name} event")
                )
        return DecodeStep.decoded(TimedEvent(self.tick, build_channel_event(status, data)))

    def _parse_meta(self, status_offset: int) -> DecodeStep:
        stream = self.stream
        if stream.remaining <= 0:
            return DecodeStep.fatal(self._malformed(status_offset, "Truncated meta event"))
        subtype = stream.read_u8()
        try:
            length = stream.read_varlen()
        except MidiError as exc:
            return DecodeStep.fatal(self._malformed(status_offset, f"Malformed meta length ({exc})"))
        if stream.remaining < length:
            return DecodeStep.fatal(
                self._malformed(status_offset, "Meta payload runs past the end of the track")
            )
        payload = stream.read_exact(length)
        if subtype == END_OF_TRACK_SUBTYPE:
            if payload:
                logger.debug(
                    "Track %d end-of-track carries %d unexpected payload byte(s)",
                    self.track.index,
                    len(payload),
                )
            return DecodeStep.decoded(TimedEvent(self.tick, EndOfTrack()))
        return DecodeStep.decoded(TimedEvent(self.tick, MetaEvent(subtype=subtype, data=payload)))

    def _parse_sysex(self, status: int, status_offset: int) -> DecodeStep:
        stream = self.stream
        kind = "SysEx" if status == 0xF0 else "Escape"
        try:
            length = stream.read_varlen()
        except MidiError as exc:
            return DecodeStep.fatal(self._malformed(status_offset, f"Malformed {kind} length ({exc})"))
        if stream.remaining < length:
            return DecodeStep.fatal(
                self._malformed(status_offset, f"{kind} payload runs past the end of the track")
            )
        stream.skip(length)
        self._sysex_count += 1
        return DecodeStep.skipped()


class StrictMidiDecoder(_TrackDecoder):
    """Parse MIDI track bytes without applying recovery heuristics."""

    policy = StrictnessPolicy.STRICT


class LenientMidiDecoder(_TrackDecoder):
    """Parse MIDI track bytes, skipping malformed events and resynchronising."""

    policy = StrictnessPolicy.RELAXED


def decoder_for(policy: StrictnessPolicy | str) -> Type[_TrackDecoder]:
    if StrictnessPolicy.parse(policy) is StrictnessPolicy.STRICT:
        return StrictMidiDecoder
    return LenientMidiDecoder


def decode_track(
    track: RawTrack, *, policy: StrictnessPolicy | str = StrictnessPolicy.RELAXED
) -> DecodedTrack:
    """Decode ``track`` with the decoder matching ``policy``."""

    return decoder_for(policy).decode(track)


__all__ = [
    "LenientMidiDecoder",
    "StrictMidiDecoder",
    "build_channel_event",
    "channel_data_length",
    "decode_track",
    "decoder_for",
]
