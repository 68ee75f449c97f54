"""Numbered items kept in fixed size chunk files on disk."""

from __future__ import annotations

import contextlib
import json
from pathlib import Path
from typing import Any, Callable, Generic, Optional, TypeVar

from .codec import DecodeError, Reader, Writer

T = TypeVar("T")

CHUNK_SIZE = 100
"""Number of item slots held by one chunk file."""

METADATA_FILE = "metadata.json"

_Chunk = list[Optional[bytes]]


def _empty_chunk() -> _Chunk:
    return [None] * CHUNK_SIZE


def _write_slot(writer: Writer, slot: Optional[bytes]) -> None:
    writer.option(slot, lambda w, data: w.bytes(data))


def _read_slot(reader: Reader) -> Optional[bytes]:
    return reader.option(lambda r: r.bytes())


class Storage(Generic[T]):
    """Stores items by id in chunk files named ``blk<n>`` under ``path``.

    Items are encoded with ``encode_item(writer, item)`` and read back with
    ``decode_item(reader)``. The count of stored ids is kept in
    ``metadata.json``. The most recently used chunk is cached in memory.
    """

    def __init__(
        self,
        path: Any,
        encode_item: Callable[[Writer, T], Any],
        decode_item: Callable[[Reader], T],
    ) -> None:
        self._path = Path(path)
        self._path.mkdir(parents=True, exist_ok=True)
        self._encode_item = encode_item
        self._decode_item = decode_item
        self._next_top = self._load_metadata()
        self._cache: Optional[tuple[int, _Chunk]] = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def next_top(self) -> int:
        """One past the highest id stored, or the size set by :meth:`truncate`."""
        return self._next_top

    def _load_metadata(self) -> int:
        try:
            text = (self._path / METADATA_FILE).read_text(encoding="utf-8")
        except OSError:
            return 0
        try:
            return int(json.loads(text)["next_top"])
        except (KeyError, TypeError) as exc:
            raise ValueError(f"malformed storage metadata in {self._path}") from exc

    def _save_metadata(self) -> None:
        payload = json.dumps({"next_top": self._next_top}, separators=(",", ":"))
        with contextlib.suppress(OSError):
            (self._path / METADATA_FILE).write_text(payload, encoding="utf-8")

    def _chunk_path(self, chunk_id: int) -> Path:
        return self._path / f"blk{chunk_id}"

    def _load_chunk(self, chunk_id: int) -> _Chunk:
        if self._cache is not None and self._cache[0] == chunk_id:
            return list(self._cache[1])

        chunk = _empty_chunk()
        try:
            raw = self._chunk_path(chunk_id).read_bytes()
            loaded = Reader(raw).sequence(_read_slot)
            if len(loaded) == CHUNK_SIZE:
                chunk = loaded
        except (OSError, DecodeError):
            pass

        self._cache = (chunk_id, list(chunk))
        return chunk

    def _store_chunk(self, chunk_id: int, chunk: _Chunk) -> None:
        writer = Writer()
        writer.sequence(chunk, _write_slot)
        with contextlib.suppress(OSError):
            self._chunk_path(chunk_id).write_bytes(writer.getvalue())
        self._cache = (chunk_id, list(chunk))

    @staticmethod
    def _check_id(item_id: int) -> None:
        if item_id < 0:
            raise ValueError(f"item id must not be negative, got {item_id}")

    def store(self, item_id: int, item: T) -> None:
        self._check_id(item_id)
        self._next_top = max(self._next_top, item_id + 1)
        self._save_metadata()

        chunk_id, index = divmod(item_id, CHUNK_SIZE)
        writer = Writer()
        self._encode_item(writer, item)
        chunk = self._load_chunk(chunk_id)
        chunk[index] = writer.getvalue()
        self._store_chunk(chunk_id, chunk)

    def truncate(self, new_size: int) -> None:
        """Set the item count; stored data beyond it is left on disk."""
        self._next_top = new_size
        self._save_metadata()

    def get(self, item_id: int) -> Optional[T]:
        self._check_id(item_id)
        chunk_id, index = divmod(item_id, CHUNK_SIZE)
        raw = self._load_chunk(chunk_id)[index]
        if raw is None:
            return None
        return self._decode_item(Reader(raw))