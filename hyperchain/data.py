"""Data units stored off-chain and referenced by page transactions."""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import ClassVar

from .codec import DecodeError, Reader, Writer
from .config import PAGE_CHUNK_SIZE
from .hashing import Hash, sha256_hash


class DataUnit(abc.ABC):
    """A unit of site data; each subclass is one variant."""

    VARIANT: ClassVar[int]

    @abc.abstractmethod
    def encode(self, writer: Writer) -> None:
        """Write the variant's fields."""

    def to_bytes(self) -> bytes:
        writer = Writer()
        writer.variant(self.VARIANT)
        self.encode(writer)
        return writer.getvalue()

    @staticmethod
    def from_bytes(data: bytes) -> "DataUnit":
        reader = Reader(data)
        index = reader.variant()
        try:
            variant = _VARIANTS[index]
        except KeyError:
            raise DecodeError(f"unknown data unit variant {index}") from None
        return variant.decode(reader)

    def chunks(self) -> list[tuple[bytes, Hash]]:
        """Split the encoded unit into chunks, each with its SHA-256."""
        data = self.to_bytes()
        return [
            (data[start:start + PAGE_CHUNK_SIZE], sha256_hash(data[start:start + PAGE_CHUNK_SIZE]))
            for start in range(0, len(data), PAGE_CHUNK_SIZE)
        ]

    def hashes(self) -> list[Hash]:
        return [chunk_hash for _, chunk_hash in self.chunks()]

    def byte_length(self) -> int:
        return len(self.to_bytes())


@dataclass
class CreatePageData(DataUnit):
    """Creates or replaces the page ``name`` with the bytes ``page``."""

    name: str
    page: bytes

    VARIANT: ClassVar[int] = 0

    def encode(self, writer: Writer) -> None:
        writer.string(self.name)
        writer.bytes(self.page)

    @classmethod
    def decode(cls, reader: Reader) -> "CreatePageData":
        return cls(name=reader.string(), page=reader.bytes())


_VARIANTS: dict[int, type] = {CreatePageData.VARIANT: CreatePageData}