"""Signed transactions and the parts shared by every kind of content."""

from __future__ import annotations

import abc
import enum
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from .codec import Reader, Writer, to_f32
from .errors import HyperchainError
from .hashing import Hash, Signature, sha256_hash
from .wallet import PublicWallet, WalletStatus, WalletValidationResult


class TransactionValidationResult(enum.Enum):
    """Outcome of checking a transaction's content and signatures."""

    OK = "ok"
    NEGATIVE = "negative"
    SIGNATURE = "signature"

    def __str__(self) -> str:
        if self is TransactionValidationResult.OK:
            return "Ok"
        if self is TransactionValidationResult.NEGATIVE:
            return "Can't have negitive transfer amounts"
        return str(WalletValidationResult.SIGNATURE)


class TransactionContent(abc.ABC):
    """The kind-specific body of a transaction."""

    @abc.abstractmethod
    def get_fee(self) -> float:
        """Fee paid to the block winner."""

    @abc.abstractmethod
    def validate(self, inputs: list["Input"]) -> TransactionValidationResult:
        """Check the content against the transaction's inputs."""

    @abc.abstractmethod
    def update_wallet_status(
        self, address: Hash, status: WalletStatus, from_amount: float, is_block_winner: bool
    ) -> WalletStatus:
        """Return ``status`` after applying this content for ``address``."""

    @abc.abstractmethod
    def to_addresses(self) -> list[Hash]:
        """Addresses that receive something from this content."""

    @abc.abstractmethod
    def get_id(self) -> int:
        """The sender's incremental transaction id."""

    @abc.abstractmethod
    def encode(self, writer: Writer) -> None:
        """Write the content's fields."""

    @classmethod
    @abc.abstractmethod
    def decode(cls, reader: Reader) -> "TransactionContent":
        """Read content written by :meth:`encode`."""


C = TypeVar("C", bound=TransactionContent)


@dataclass
class Input:
    """Coins taken from the wallet owning ``public_key``."""

    public_key: Signature
    e: bytes
    amount: float

    def __post_init__(self) -> None:
        if not isinstance(self.public_key, Signature):
            self.public_key = Signature(self.public_key)
        self.e = bytes(self.e)
        if len(self.e) != 3:
            raise ValueError(f"public exponent must be 3 bytes, got {len(self.e)}")
        self.amount = to_f32(self.amount)

    def address(self) -> Hash:
        return sha256_hash(self.public_key)

    def encode(self, writer: Writer) -> None:
        self.public_key.encode(writer)
        writer.raw(self.e)
        writer.f32(self.amount)

    @classmethod
    def decode(cls, reader: Reader) -> "Input":
        return cls(public_key=Signature.decode(reader), e=reader.raw(3), amount=reader.f32())


@dataclass
class TransactionHeader(Generic[C]):
    """The signed part of a transaction."""

    content: C
    inputs: list[Input] = field(default_factory=list)

    def encode(self, writer: Writer) -> None:
        self.content.encode(writer)
        writer.sequence(self.inputs, lambda w, item: item.encode(w))

    def to_bytes(self) -> bytes:
        writer = Writer()
        self.encode(writer)
        return writer.getvalue()

    def hash(self) -> Hash:
        return sha256_hash(self.to_bytes())


def _write_signature(writer: Writer, entry: tuple[Hash, Signature]) -> None:
    address, signature = entry
    address.encode(writer)
    signature.encode(writer)


def _read_signature(reader: Reader) -> tuple[Hash, Signature]:
    return Hash.decode(reader), Signature.decode(reader)


@dataclass
class Transaction(Generic[C]):
    """A header together with one signature per input address."""

    header: TransactionHeader[C]
    signatures: dict[Hash, Signature] = field(default_factory=dict)

    def hash(self) -> Hash:
        return self.header.hash()

    def fee_per_byte(self) -> float:
        size = len(self.header.to_bytes())
        return to_f32(self.header.content.get_fee() / size)

    def update_wallet_status(
        self, address: Hash, status: WalletStatus, is_block_winner: bool
    ) -> WalletStatus:
        from_amount = next(
            (item.amount for item in self.header.inputs if item.address() == address), 0.0
        )
        return self.header.content.update_wallet_status(
            address, status, from_amount, is_block_winner
        )

    def validate_content(self) -> TransactionValidationResult:
        result = self.header.content.validate(self.header.inputs)
        if result is not TransactionValidationResult.OK:
            return result

        digest = self.hash().data()
        for item in self.header.inputs:
            try:
                signature = self.signatures[item.address()]
            except KeyError:
                raise HyperchainError(f"Missing signature for {item.address()}") from None
            wallet = PublicWallet(item.public_key, item.e)
            if wallet.verify(digest, signature.data()) is not WalletValidationResult.OK:
                return TransactionValidationResult.SIGNATURE

        return TransactionValidationResult.OK

    def from_addresses(self) -> list[Hash]:
        return [item.address() for item in self.header.inputs]

    def addresses_used(self) -> list[Hash]:
        return self.from_addresses() + self.header.content.to_addresses()

    def get_id(self) -> int:
        return self.header.content.get_id()

    def encode(self, writer: Writer) -> None:
        self.header.encode(writer)
        entries = sorted(self.signatures.items(), key=lambda entry: entry[0].data())
        writer.sequence(entries, _write_signature)

    @classmethod
    def decode(cls, reader: Reader, content_type: Any) -> "Transaction":
        content = content_type.decode(reader)
        inputs = reader.sequence(Input.decode)
        signatures = dict(reader.sequence(_read_signature))
        return cls(TransactionHeader(content, inputs), signatures)


class TransactionBuilder(Generic[C]):
    """Collects inputs for some content and signs the result.

    Wallets passed to :meth:`add_input` provide ``public_key()``,
    ``public_exponent()`` (3 bytes, little-endian) and ``sign(digest)``.
    """

    def __init__(self, content: C) -> None:
        self._content = content
        self._inputs: list[tuple[Any, Input]] = []

    def add_input(self, wallet: Any, amount: float) -> "TransactionBuilder[C]":
        entry = Input(public_key=wallet.public_key(), e=wallet.public_exponent(), amount=amount)
        self._inputs.append((wallet, entry))
        return self

    def build(self) -> Transaction[C]:
        header = TransactionHeader(self._content, [entry for _, entry in self._inputs])
        digest = header.hash().data()
        signatures = {
            entry.address(): Signature(wallet.sign(digest)) for wallet, entry in self._inputs
        }
        return Transaction(header, signatures)