from __future__ import annotations

import pytest

from midi_tools.midi_import.errors import MalformedVarint, UnexpectedEof
from midi_tools.midi_import.streams import SafeStream


def test_fixed_width_reads_are_big_endian_and_advance() -> None:
    stream = SafeStream(bytes([0x01, 0x02, 0x03, 0x04, 0x05, 0x06, 0x07]))

    assert stream.read_u8() == 0x01
    assert stream.read_u16() == 0x0203
    assert stream.read_u32() == 0x04050607
    assert stream.position() == 7
    assert stream.remaining == 0


def test_peek_does_not_advance() -> None:
    stream = SafeStream(b"\x90\x3c")

    assert stream.peek_u8() == 0x90
    assert stream.tell() == 0
    assert stream.read_bytes(2) == b"\x90\x3c"


@pytest.mark.parametrize(
    "data, expected",
    [
        pytest.param(b"\x00", 0, id="zero"),
        pytest.param(b"\x7f", 0x7F, id="one-byte-max"),
        pytest.param(b"\x81\x00", 0x80, id="two-bytes"),
        pytest.param(b"\xc0\x00", 0x2000, id="two-bytes-high"),
        pytest.param(b"\xff\xff\x7f", 0x1FFFFF, id="three-bytes"),
        pytest.param(b"\xff\xff\xff\x7f", 0x0FFFFFFF, id="four-byte-max"),
    ],
)
def test_read_varlen_decodes_quantities(data: bytes, expected: int) -> None:
    stream = SafeStream(data)

    assert stream.read_varlen() == expected
    assert stream.remaining == 0


@pytest.mark.parametrize(
    "data",
    [
        pytest.param(bytes([0xFF, 0xFF, 0xFF, 0xFF]), id="exactly-four"),
        pytest.param(bytes([0xFF, 0xFF, 0xFF, 0xFF, 0x7F]), id="with-terminator"),
    ],
)
def test_safe_stream_rejects_overlong_vlq(data: bytes) -> None:
    stream = SafeStream(data)
    with pytest.raises(MalformedVarint, match="Variable-length quantity"):
        stream.read_varlen()


def test_read_varlen_raises_eof_when_unterminated() -> None:
    stream = SafeStream(b"\x81\x80")

    with pytest.raises(UnexpectedEof):
        stream.read_varlen()


def test_reads_past_end_raise_unexpected_eof() -> None:
    stream = SafeStream(b"\x01")

    with pytest.raises(UnexpectedEof):
        stream.read_u16()
    # A failed read leaves the cursor where it was.
    assert stream.tell() == 0
    with pytest.raises(UnexpectedEof):
        SafeStream(b"").peek_u8()


def test_seek_repositions_within_bounds() -> None:
    stream = SafeStream(b"\x01\x02\x03")

    stream.skip(3)
    assert stream.remaining == 0
    stream.seek(1)
    assert stream.read_u8() == 0x02
    with pytest.raises(UnexpectedEof):
        stream.seek(4)
