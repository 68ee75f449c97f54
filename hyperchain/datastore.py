"""Content-addressed storage of page data chunks."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable

from . import base62
from .codec import Reader, Writer
from .data import DataUnit
from .hashing import Hash
from .transaction import Transaction


class DataStore:
    """Chunks stored in files named by the base-62 text of their hash."""

    def __init__(self, path: Any) -> None:
        self._path = Path(path)
        self._path.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def _file(self, chunk_id: Hash) -> Path:
        return self._path / str(chunk_id)

    def for_page_updates(self, updates: Iterable[Transaction]) -> dict[Hash, DataUnit]:
        """Map each page update's id to the data unit it published."""
        return {update.hash(): self.get_data_unit(update) for update in updates}

    def store(self, chunk_id: Hash, data: bytes) -> None:
        writer = Writer()
        writer.bytes(data)
        self._file(chunk_id).write_bytes(writer.getvalue())

    def store_data_unit(self, data_unit: DataUnit) -> None:
        for chunk, chunk_hash in data_unit.chunks():
            self.store(chunk_hash, chunk)

    def get(self, chunk_id: Hash) -> bytes:
        """The stored chunk; raises :class:`OSError` if it is not stored."""
        return Reader(self._file(chunk_id).read_bytes()).bytes()

    def get_data_unit(self, transaction: Transaction) -> DataUnit:
        """Reassemble the data unit referenced by a page transaction."""
        data = b"".join(self.get(chunk_hash) for chunk_hash in transaction.header.content.data_hashes)
        return DataUnit.from_bytes(data)

    def report(self) -> set[Hash]:
        """Hashes of every stored chunk."""
        return {Hash(base62.decode(entry.name)) for entry in self._path.iterdir()}

    def has_chunk(self, chunk_hash: Hash) -> bool:
        return self._file(chunk_hash).exists()