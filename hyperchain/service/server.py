"""The service's listening side: commands from every client are handled one at a time."""

from __future__ import annotations

import contextlib
import logging
import queue
import socket
import threading
from typing import Any, Callable, Optional

from ..codec import DecodeError
from .client import DEFAULT_PORT, read_frame, write_frame
from .command import ExitResponse, decode_command, encode_response

logger = logging.getLogger(__name__)

_POLL_SECONDS = 0.1
_EXIT_GRACE_SECONDS = 5.0


def _await_reply(replies: queue.Queue, stopping: threading.Event) -> Optional[Any]:
    while True:
        try:
            return replies.get(timeout=_POLL_SECONDS)
        except queue.Empty:
            if stopping.is_set():
                return None


def _handle_client(
    conn: socket.socket,
    commands: queue.Queue,
    stopping: threading.Event,
    exit_delivered: threading.Event,
) -> None:
    reader = conn.makefile("rb")
    writer = conn.makefile("wb")
    try:
        while True:
            try:
                command = decode_command(read_frame(reader))
            except (EOFError, OSError, DecodeError):
                break

            logger.debug("Got command %r", command)
            replies: queue.Queue = queue.Queue(maxsize=1)
            commands.put((replies, command))
            response = _await_reply(replies, stopping)
            if response is None:
                break

            is_exit = isinstance(response, ExitResponse)
            try:
                write_frame(writer, encode_response(response))
                writer.flush()
            except OSError:
                break
            finally:
                if is_exit:
                    exit_delivered.set()
    finally:
        for stream in (writer, reader):
            with contextlib.suppress(OSError):
                stream.close()


def _serve(
    listener: socket.socket,
    commands: queue.Queue,
    stopping: threading.Event,
    exit_delivered: threading.Event,
) -> None:
    handlers: list[tuple[socket.socket, threading.Thread]] = []
    with listener:
        while True:
            try:
                conn, _ = listener.accept()
            except OSError as exc:
                logger.error("Server Error: %s", exc)
                break

            if stopping.is_set():
                conn.close()
                break

            thread = threading.Thread(
                target=_handle_client,
                args=(conn, commands, stopping, exit_delivered),
                daemon=True,
            )
            thread.start()
            handlers.append((conn, thread))

    for conn, thread in handlers:
        with contextlib.suppress(OSError):
            conn.shutdown(socket.SHUT_RDWR)
        thread.join()
        conn.close()


def _wake(address: tuple[str, int]) -> None:
    host, port = address
    if host in ("", "0.0.0.0"):
        host = "127.0.0.1"
    elif host == "::":
        host = "::1"
    with contextlib.suppress(OSError):
        socket.create_connection((host, port), timeout=1.0).close()


def start(
    on_command: Callable[[Any], Any],
    host: str = "0.0.0.0",
    port: int = DEFAULT_PORT,
    ready: Optional[Callable[[tuple[str, int]], Any]] = None,
) -> None:
    """Serve until ``on_command`` returns an :class:`ExitResponse`.

    ``ready`` is called with the bound ``(host, port)`` once clients can connect.
    """
    listener = socket.create_server((host, port))
    address = tuple(listener.getsockname()[:2])
    commands: queue.Queue = queue.Queue()
    stopping = threading.Event()
    exit_delivered = threading.Event()

    server = threading.Thread(
        target=_serve, args=(listener, commands, stopping, exit_delivered), daemon=True
    )
    server.start()
    if ready is not None:
        ready(address)

    try:
        while True:
            replies, command = commands.get()
            response = on_command(command)
            replies.put(response)
            if isinstance(response, ExitResponse):
                exit_delivered.wait(_EXIT_GRACE_SECONDS)
                break
    finally:
        stopping.set()
        _wake(address)
        server.join()