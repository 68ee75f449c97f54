import pytest

from hyperchain.codec import DecodeError, Reader, Writer
from hyperchain.config import PAGE_CHUNK_SIZE
from hyperchain.data import CreatePageData, DataUnit
from hyperchain.hashing import sha256_hash


def test_wire_format_of_empty_page():
    unit = CreatePageData("index.html", b"")
    expected = (
        b"\x00\x00\x00\x00"
        + b"\x0a\x00\x00\x00\x00\x00\x00\x00" + b"index.html"
        + b"\x00" * 8
    )
    assert unit.to_bytes() == expected


def test_round_trip():
    unit = CreatePageData("blog/post.html", b"<h1>hi</h1>")
    assert DataUnit.from_bytes(unit.to_bytes()) == unit


def test_field_round_trip():
    unit = CreatePageData("a", b"\x00\x01")
    writer = Writer()
    unit.encode(writer)
    assert CreatePageData.decode(Reader(writer.getvalue())) == unit


def test_unknown_variant_raises():
    with pytest.raises(DecodeError):
        DataUnit.from_bytes(b"\x05\x00\x00\x00")


def test_byte_length_matches_encoding():
    unit = CreatePageData("index.html", b"abc")
    assert unit.byte_length() == len(unit.to_bytes())


def test_small_unit_is_one_chunk():
    unit = CreatePageData("index.html", b"abc")
    chunks = unit.chunks()
    assert len(chunks) == 1
    data, chunk_hash = chunks[0]
    assert data == unit.to_bytes()
    assert chunk_hash == sha256_hash(data)


def test_large_unit_splits_into_chunks():
    unit = CreatePageData("big.bin", b"x" * PAGE_CHUNK_SIZE)
    chunks = unit.chunks()
    assert len(chunks) == 2
    assert len(chunks[0][0]) == PAGE_CHUNK_SIZE
    assert b"".join(data for data, _ in chunks) == unit.to_bytes()
    assert unit.hashes() == [sha256_hash(data) for data, _ in chunks]


def test_hashes_change_with_content():
    assert CreatePageData("a", b"1").hashes() != CreatePageData("a", b"2").hashes()