"""Compact little-endian binary encoding used for hashing and storage.

Integers are fixed width, sequences and strings carry a u64 length
prefix, enum variants a u32 index and optional values a one byte tag.
"""

from __future__ import annotations

import io
import struct
from typing import Any, Callable, Iterable, Optional, TypeVar

T = TypeVar("T")


class DecodeError(ValueError):
    """Raised when encoded data is truncated or malformed."""


def to_f32(value: float) -> float:
    """Round a float to single precision."""
    return struct.unpack("<f", struct.pack("<f", value))[0]


def _pack(fmt: str, value: Any) -> bytes:
    try:
        return struct.pack(fmt, value)
    except (struct.error, OverflowError) as exc:
        raise ValueError(f"value {value!r} does not fit format {fmt!r}") from exc


class Writer:
    """Accumulates encoded values."""

    def __init__(self) -> None:
        self._out = io.BytesIO()

    def u8(self, value: int) -> None:
        self._out.write(_pack("<B", value))

    def u32(self, value: int) -> None:
        self._out.write(_pack("<I", value))

    def u64(self, value: int) -> None:
        self._out.write(_pack("<Q", value))

    def u128(self, value: int) -> None:
        if not 0 <= value < 1 << 128:
            raise ValueError(f"value {value!r} does not fit in u128")
        self._out.write(value.to_bytes(16, "little"))

    def f32(self, value: float) -> None:
        self._out.write(_pack("<f", value))

    def f64(self, value: float) -> None:
        self._out.write(_pack("<d", value))

    def bool(self, value: bool) -> None:
        self.u8(1 if value else 0)

    def raw(self, data: bytes) -> None:
        """Write bytes with no length prefix."""
        self._out.write(bytes(data))

    def bytes(self, data: bytes) -> None:
        """Write a length-prefixed byte string."""
        raw = bytes(data)
        self.u64(len(raw))
        self._out.write(raw)

    def string(self, value: str) -> None:
        self.bytes(value.encode("utf-8"))

    def variant(self, index: int) -> None:
        self.u32(index)

    def option(self, value: Optional[T], write: Callable[["Writer", T], Any]) -> None:
        if value is None:
            self.u8(0)
        else:
            self.u8(1)
            write(self, value)

    def sequence(self, items: Iterable[T], write: Callable[["Writer", T], Any]) -> None:
        items = list(items)
        self.u64(len(items))
        for item in items:
            write(self, item)

    def getvalue(self) -> bytes:
        return self._out.getvalue()


class Reader:
    """Reads values written by :class:`Writer`."""

    def __init__(self, data: bytes) -> None:
        self._data = memoryview(bytes(data))
        self._pos = 0

    def _take(self, size: int) -> bytes:
        end = self._pos + size
        if size < 0 or end > len(self._data):
            raise DecodeError(
                f"need {size} bytes at offset {self._pos}, only {self.remaining()} left"
            )
        chunk = bytes(self._data[self._pos:end])
        self._pos = end
        return chunk

    def _unpack(self, fmt: str) -> Any:
        return struct.unpack(fmt, self._take(struct.calcsize(fmt)))[0]

    def u8(self) -> int:
        return self._unpack("<B")

    def u32(self) -> int:
        return self._unpack("<I")

    def u64(self) -> int:
        return self._unpack("<Q")

    def u128(self) -> int:
        return int.from_bytes(self._take(16), "little")

    def f32(self) -> float:
        return self._unpack("<f")

    def f64(self) -> float:
        return self._unpack("<d")

    def bool(self) -> bool:
        tag = self.u8()
        if tag not in (0, 1):
            raise DecodeError(f"invalid boolean tag {tag}")
        return tag == 1

    def raw(self, size: int) -> bytes:
        return self._take(size)

    def bytes(self) -> bytes:
        return self._take(self.u64())

    def string(self) -> str:
        try:
            return self.bytes().decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError("string is not valid UTF-8") from exc

    def variant(self) -> int:
        return self.u32()

    def option(self, read: Callable[["Reader"], T]) -> Optional[T]:
        tag = self.u8()
        if tag == 0:
            return None
        if tag == 1:
            return read(self)
        raise DecodeError(f"invalid option tag {tag}")

    def sequence(self, read: Callable[["Reader"], T]) -> list[T]:
        return [read(self) for _ in range(self.u64())]

    def remaining(self) -> int:
        return len(self._data) - self._pos