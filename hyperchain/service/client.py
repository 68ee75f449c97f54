"""A connection to the local service, exchanging length-prefixed frames."""

from __future__ import annotations

import socket
import struct
from typing import BinaryIO

from .command import decode_response, encode_command

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 9988

_LENGTH = struct.Struct("<Q")


def write_frame(stream: BinaryIO, payload: bytes) -> None:
    """Write ``payload`` preceded by its length as a little-endian u64."""
    stream.write(_LENGTH.pack(len(payload)))
    stream.write(payload)


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    parts = []
    remaining = size
    while remaining:
        chunk = stream.read(remaining)
        if not chunk:
            raise EOFError("connection closed in the middle of a frame")
        parts.append(chunk)
        remaining -= len(chunk)
    return b"".join(parts)


def read_frame(stream: BinaryIO) -> bytes:
    """Read one frame; raises :class:`EOFError` if the stream ends first."""
    (size,) = _LENGTH.unpack(_read_exact(stream, _LENGTH.size))
    return _read_exact(stream, size)


class Client:
    """Sends commands to the service and waits for each response."""

    def __init__(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> None:
        self._socket = socket.create_connection((host, port))
        self._reader = self._socket.makefile("rb")
        self._writer = self._socket.makefile("wb")

    def send(self, command):
        write_frame(self._writer, encode_command(command))
        self._writer.flush()
        return decode_response(read_frame(self._reader))

    def close(self) -> None:
        for stream in (self._writer, self._reader):
            try:
                stream.close()
            except OSError:
                pass
        self._socket.close()

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *args) -> None:
        self.close()