"""Fixed size hash and signature values."""

from __future__ import annotations

import hashlib
from typing import Any, ClassVar

from . import base62
from .codec import Reader, Writer
from .config import HASH_LEN, PUB_KEY_LEN


class HashData:
    """An immutable byte string of fixed length ``SIZE``.

    Shorter input is padded with zero bytes; longer input is rejected.
    """

    SIZE: ClassVar[int] = 0
    __slots__ = ("_data",)

    def __init__(self, data: Any = b"") -> None:
        raw = bytes(data)
        if len(raw) > self.SIZE:
            raise ValueError(
                f"{type(self).__name__} holds {self.SIZE} bytes, got {len(raw)}"
            )
        self._data = raw.ljust(self.SIZE, b"\0")

    @classmethod
    def empty(cls) -> "HashData":
        return cls()

    def data(self) -> bytes:
        return self._data

    def __bytes__(self) -> bytes:
        return self._data

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._data == other._data

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._data))

    def __str__(self) -> str:
        return base62.encode(self._data)

    def __repr__(self) -> str:
        text = str(self)
        if len(text) <= 8:
            return text
        return f"{text[:4]}…{text[-4:]}"

    def encode(self, writer: Writer) -> None:
        writer.bytes(self._data)

    @classmethod
    def decode(cls, reader: Reader) -> "HashData":
        return cls(reader.bytes())


class Hash(HashData):
    """A SHA-256 sized value."""

    SIZE = HASH_LEN
    __slots__ = ()


class Signature(HashData):
    """A public key or signature sized value."""

    SIZE = PUB_KEY_LEN
    __slots__ = ()


def sha256_hash(*args: Any) -> Hash:
    """SHA-256 over the concatenation of the given byte-like values."""
    hasher = hashlib.sha256()
    for part in args:
        hasher.update(bytes(part))
    return Hash(hasher.digest())