"""Requests sent to the service and the responses it returns, with their wire encoding."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..block import Block
from ..codec import DecodeError, Reader, Writer, to_f32
from ..data import DataUnit
from ..page import Page
from ..transaction import Transaction
from ..variant import decode_variant, encode_variant
from ..wallet import WalletStatus


class _Message:
    """A message without fields; subclasses with fields override both hooks."""

    def _write(self, writer: Writer) -> None:
        return None

    @classmethod
    def _read(cls, reader: Reader) -> "_Message":
        return cls()


def _amounts(pairs: list[tuple[bytes, float]]) -> list[tuple[bytes, float]]:
    return [(bytes(key), to_f32(amount)) for key, amount in pairs]


def _write_amount(writer: Writer, pair: tuple[bytes, float]) -> None:
    key, amount = pair
    writer.bytes(key)
    writer.f32(amount)


def _read_amount(reader: Reader) -> tuple[bytes, float]:
    return reader.bytes(), reader.f32()


def _write_block(writer: Writer, block: Block) -> None:
    block.encode(writer)


def _write_entry(writer: Writer, entry: tuple[Transaction, Optional[Block]]) -> None:
    transaction, block = entry
    encode_variant(writer, transaction)
    writer.option(block, _write_block)


def _read_entry(reader: Reader) -> tuple[Transaction, Optional[Block]]:
    transaction = decode_variant(reader)
    return transaction, reader.option(Block.decode)


# Commands


@dataclass
class ExitCommand(_Message):
    """Ask the service to shut down."""


@dataclass
class BalanceCommand(_Message):
    """Ask for the status of the wallet at ``address``."""

    address: bytes

    def __post_init__(self) -> None:
        self.address = bytes(self.address)

    def _write(self, writer: Writer) -> None:
        writer.bytes(self.address)

    @classmethod
    def _read(cls, reader: Reader) -> "BalanceCommand":
        return cls(reader.bytes())


@dataclass
class SendCommand(_Message):
    """Send coins from serialized private wallets to addresses."""

    inputs: list[tuple[bytes, float]] = field(default_factory=list)
    outputs: list[tuple[bytes, float]] = field(default_factory=list)
    fee: float = 0.0

    def __post_init__(self) -> None:
        self.inputs = _amounts(self.inputs)
        self.outputs = _amounts(self.outputs)
        self.fee = to_f32(self.fee)

    def _write(self, writer: Writer) -> None:
        writer.sequence(self.inputs, _write_amount)
        writer.sequence(self.outputs, _write_amount)
        writer.f32(self.fee)

    @classmethod
    def _read(cls, reader: Reader) -> "SendCommand":
        inputs = reader.sequence(_read_amount)
        outputs = reader.sequence(_read_amount)
        return cls(inputs, outputs, reader.f32())


@dataclass
class UpdatePageCommand(_Message):
    """Publish ``page`` under ``name`` for the site of the serialized wallet ``sender``."""

    sender: bytes
    name: str
    page: bytes

    def __post_init__(self) -> None:
        self.sender = bytes(self.sender)
        self.page = bytes(self.page)

    def _write(self, writer: Writer) -> None:
        writer.bytes(self.sender)
        writer.string(self.name)
        writer.bytes(self.page)

    @classmethod
    def _read(cls, reader: Reader) -> "UpdatePageCommand":
        sender = reader.bytes()
        name = reader.string()
        return cls(sender, name, reader.bytes())


@dataclass
class TransactionInfoCommand(_Message):
    """Ask for a transaction and the block holding it."""

    transaction_id: bytes

    def __post_init__(self) -> None:
        self.transaction_id = bytes(self.transaction_id)

    def _write(self, writer: Writer) -> None:
        writer.bytes(self.transaction_id)

    @classmethod
    def _read(cls, reader: Reader) -> "TransactionInfoCommand":
        return cls(reader.bytes())


@dataclass
class TransactionHistoryCommand(_Message):
    """Ask for every transaction touching ``address``."""

    address: bytes

    def __post_init__(self) -> None:
        self.address = bytes(self.address)

    def _write(self, writer: Writer) -> None:
        writer.bytes(self.address)

    @classmethod
    def _read(cls, reader: Reader) -> "TransactionHistoryCommand":
        return cls(reader.bytes())


@dataclass
class BlocksCommand(_Message):
    """Ask for the blocks from ``start`` to ``end``, both included."""

    start: int
    end: int

    def _write(self, writer: Writer) -> None:
        writer.u64(self.start)
        writer.u64(self.end)

    @classmethod
    def _read(cls, reader: Reader) -> "BlocksCommand":
        start = reader.u64()
        return cls(start, reader.u64())


@dataclass
class TopBlockCommand(_Message):
    """Ask for the top block of the chain."""


@dataclass
class PageUpdatesCommand(_Message):
    """Ask for the page updates of the site at ``site``."""

    site: bytes

    def __post_init__(self) -> None:
        self.site = bytes(self.site)

    def _write(self, writer: Writer) -> None:
        writer.bytes(self.site)

    @classmethod
    def _read(cls, reader: Reader) -> "PageUpdatesCommand":
        return cls(reader.bytes())


@dataclass
class PageDataCommand(_Message):
    """Ask for the data published by a page update."""

    transaction_id: bytes

    def __post_init__(self) -> None:
        self.transaction_id = bytes(self.transaction_id)

    def _write(self, writer: Writer) -> None:
        writer.bytes(self.transaction_id)

    @classmethod
    def _read(cls, reader: Reader) -> "PageDataCommand":
        return cls(reader.bytes())


@dataclass
class StatisticsCommand(_Message):
    """Ask for network statistics."""


# Responses


@dataclass
class Statistics:
    """Network hash rate and how well page chunks are replicated."""

    hash_rate: float
    known_chunks: int
    replication: float

    def _write(self, writer: Writer) -> None:
        writer.f64(self.hash_rate)
        writer.u64(self.known_chunks)
        writer.f64(self.replication)

    @classmethod
    def _read(cls, reader: Reader) -> "Statistics":
        hash_rate = reader.f64()
        known_chunks = reader.u64()
        return cls(hash_rate, known_chunks, reader.f64())


@dataclass
class ExitResponse(_Message):
    """The service is shutting down."""


@dataclass
class WalletStatusResponse(_Message):
    status: WalletStatus

    def _write(self, writer: Writer) -> None:
        self.status.encode(writer)

    @classmethod
    def _read(cls, reader: Reader) -> "WalletStatusResponse":
        return cls(WalletStatus.decode(reader))


@dataclass
class SentResponse(_Message):
    """A transaction was queued; carries its id."""

    transaction_id: bytes

    def __post_init__(self) -> None:
        self.transaction_id = bytes(self.transaction_id)

    def _write(self, writer: Writer) -> None:
        writer.bytes(self.transaction_id)

    @classmethod
    def _read(cls, reader: Reader) -> "SentResponse":
        return cls(reader.bytes())


@dataclass
class TransactionInfoResponse(_Message):
    """A transaction and its block, or ``None`` while it is pending."""

    transaction: Transaction
    block: Optional[Block] = None

    def _write(self, writer: Writer) -> None:
        _write_entry(writer, (self.transaction, self.block))

    @classmethod
    def _read(cls, reader: Reader) -> "TransactionInfoResponse":
        transaction, block = _read_entry(reader)
        return cls(transaction, block)


@dataclass
class TransactionHistoryResponse(_Message):
    history: list[tuple[Transaction, Optional[Block]]] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.history = [tuple(entry) for entry in self.history]

    def _write(self, writer: Writer) -> None:
        writer.sequence(self.history, _write_entry)

    @classmethod
    def _read(cls, reader: Reader) -> "TransactionHistoryResponse":
        return cls(reader.sequence(_read_entry))


@dataclass
class BlocksResponse(_Message):
    blocks: list[Block] = field(default_factory=list)

    def _write(self, writer: Writer) -> None:
        writer.sequence(self.blocks, _write_block)

    @classmethod
    def _read(cls, reader: Reader) -> "BlocksResponse":
        return cls(reader.sequence(Block.decode))


@dataclass
class PageUpdatesResponse(_Message):
    updates: list[Transaction] = field(default_factory=list)

    def _write(self, writer: Writer) -> None:
        writer.sequence(self.updates, lambda w, update: update.encode(w))

    @classmethod
    def _read(cls, reader: Reader) -> "PageUpdatesResponse":
        return cls(reader.sequence(lambda r: Transaction.decode(r, Page)))


@dataclass
class PageDataResponse(_Message):
    data: DataUnit

    def _write(self, writer: Writer) -> None:
        writer.bytes(self.data.to_bytes())

    @classmethod
    def _read(cls, reader: Reader) -> "PageDataResponse":
        return cls(DataUnit.from_bytes(reader.bytes()))


@dataclass
class StatisticsResponse(_Message):
    statistics: Statistics

    def _write(self, writer: Writer) -> None:
        self.statistics._write(writer)

    @classmethod
    def _read(cls, reader: Reader) -> "StatisticsResponse":
        return cls(Statistics._read(reader))


@dataclass
class FailedResponse(_Message):
    """The command could not be carried out."""


_COMMANDS: tuple[type, ...] = (
    ExitCommand,
    BalanceCommand,
    SendCommand,
    UpdatePageCommand,
    TransactionInfoCommand,
    TransactionHistoryCommand,
    BlocksCommand,
    TopBlockCommand,
    PageUpdatesCommand,
    PageDataCommand,
    StatisticsCommand,
)

_RESPONSES: tuple[type, ...] = (
    ExitResponse,
    WalletStatusResponse,
    SentResponse,
    TransactionInfoResponse,
    TransactionHistoryResponse,
    BlocksResponse,
    PageUpdatesResponse,
    PageDataResponse,
    StatisticsResponse,
    FailedResponse,
)

_COMMAND_INDEX = {kind: index for index, kind in enumerate(_COMMANDS)}
_RESPONSE_INDEX = {kind: index for index, kind in enumerate(_RESPONSES)}


def _encode(message: _Message, indices: dict[type, int], what: str) -> bytes:
    try:
        index = indices[type(message)]
    except KeyError:
        raise TypeError(f"not a {what}: {type(message).__name__}") from None
    writer = Writer()
    writer.variant(index)
    message._write(writer)
    return writer.getvalue()


def _decode(data: bytes, kinds: tuple[type, ...], what: str) -> _Message:
    reader = Reader(bytes(data))
    index = reader.variant()
    if index >= len(kinds):
        raise DecodeError(f"unknown {what} variant {index}")
    message = kinds[index]._read(reader)
    if reader.remaining():
        raise DecodeError(f"trailing bytes after {what}")
    return message


def encode_command(command: _Message) -> bytes:
    return _encode(command, _COMMAND_INDEX, "command")


def decode_command(data: bytes) -> _Message:
    """Read a command; raises :class:`DecodeError` on malformed data."""
    return _decode(data, _COMMANDS, "command")


def encode_response(response: _Message) -> bytes:
    return _encode(response, _RESPONSE_INDEX, "response")


def decode_response(data: bytes) -> _Message:
    """Read a response; raises :class:`DecodeError` on malformed data."""
    return _decode(data, _RESPONSES, "response")