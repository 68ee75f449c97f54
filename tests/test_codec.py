import math

import pytest

from hyperchain.codec import DecodeError, Reader, Writer, to_f32


def test_u32_is_little_endian():
    writer = Writer()
    writer.u32(1)
    assert writer.getvalue() == b"\x01\x00\x00\x00"


def test_bytes_have_u64_length_prefix():
    writer = Writer()
    writer.bytes(b"ab")
    assert writer.getvalue() == b"\x02\x00\x00\x00\x00\x00\x00\x00ab"


def test_option_tags():
    writer = Writer()
    writer.option(None, Writer.u8)
    writer.option(5, Writer.u8)
    assert writer.getvalue() == b"\x00\x01\x05"


def test_round_trip_of_all_kinds():
    writer = Writer()
    writer.u8(200)
    writer.u32(123456)
    writer.u64(2**40 + 7)
    writer.u128(2**100 + 3)
    writer.f32(0.5)
    writer.f64(math.pi)
    writer.bool(True)
    writer.bool(False)
    writer.raw(b"xyz")
    writer.bytes(b"hello")
    writer.string("päge")
    writer.variant(3)
    writer.option(9, Writer.u32)
    writer.sequence([b"a", b"bc"], Writer.bytes)

    reader = Reader(writer.getvalue())
    assert reader.u8() == 200
    assert reader.u32() == 123456
    assert reader.u64() == 2**40 + 7
    assert reader.u128() == 2**100 + 3
    assert reader.f32() == 0.5
    assert reader.f64() == math.pi
    assert reader.bool() is True
    assert reader.bool() is False
    assert reader.raw(3) == b"xyz"
    assert reader.bytes() == b"hello"
    assert reader.string() == "päge"
    assert reader.variant() == 3
    assert reader.option(Reader.u32) == 9
    assert reader.sequence(Reader.bytes) == [b"a", b"bc"]
    assert reader.remaining() == 0


def test_option_none_round_trip():
    writer = Writer()
    writer.option(None, Writer.u64)
    assert Reader(writer.getvalue()).option(Reader.u64) is None


def test_truncated_data_raises():
    with pytest.raises(DecodeError):
        Reader(b"\x01\x00").u32()


def test_length_prefix_past_end_raises():
    writer = Writer()
    writer.u64(10)
    with pytest.raises(DecodeError):
        Reader(writer.getvalue() + b"abc").bytes()


def test_invalid_bool_raises():
    with pytest.raises(DecodeError):
        Reader(b"\x02").bool()


def test_invalid_option_tag_raises():
    with pytest.raises(DecodeError):
        Reader(b"\x07").option(Reader.u8)


def test_invalid_utf8_raises():
    writer = Writer()
    writer.bytes(b"\xff\xfe")
    with pytest.raises(DecodeError):
        Reader(writer.getvalue()).string()


def test_out_of_range_values_raise():
    with pytest.raises(ValueError):
        Writer().u8(256)
    with pytest.raises(ValueError):
        Writer().u32(-1)
    with pytest.raises(ValueError):
        Writer().u128(1 << 128)


def test_to_f32_is_idempotent_and_single_precision():
    rounded = to_f32(0.1)
    assert rounded != 0.1
    assert to_f32(rounded) == rounded
    writer = Writer()
    writer.f32(0.1)
    assert Reader(writer.getvalue()).f32() == rounded


def test_to_f32_keeps_exact_values():
    assert to_f32(2.5) == 2.5


def test_remaining_counts_down():
    reader = Reader(b"\x01\x02\x03")
    reader.u8()
    assert reader.remaining() == 2