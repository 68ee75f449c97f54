"""Transactions that publish a site page."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from .codec import Reader, Writer, to_f32
from .config import PAGE_CHUNK_SIZE
from .data import DataUnit
from .errors import HyperchainError
from .hashing import Hash
from .transaction import Input, TransactionContent, TransactionValidationResult
from .wallet import WalletStatus


@dataclass
class Page(TransactionContent):
    """Records the chunk hashes of a data unit published by ``site``."""

    id: int
    site: Hash
    data_hashes: list[Hash] = field(default_factory=list)
    data_length: int = 0
    fee: float = 0.0

    def __post_init__(self) -> None:
        self.data_hashes = list(self.data_hashes)
        self.fee = to_f32(self.fee)

    @classmethod
    def new_from_data(cls, id: int, site: Hash, data: DataUnit, fee: float) -> "Page":
        return cls(id, site, data.hashes(), data.byte_length(), fee)

    def cost(self) -> float:
        """Size of the data in megabytes."""
        return to_f32(to_f32(self.data_length) / PAGE_CHUNK_SIZE)

    def check_data(self, data: DataUnit) -> None:
        """Raise :class:`HyperchainError` unless ``data`` matches the recorded hashes."""
        hashes = data.hashes()
        if len(hashes) != len(self.data_hashes):
            raise HyperchainError("Missmatched data length")
        if any(ours != theirs for ours, theirs in zip(hashes, self.data_hashes)):
            raise HyperchainError("Incorrect data")

    def get_fee(self) -> float:
        return self.fee

    def validate(self, inputs: list[Input]) -> TransactionValidationResult:
        if not any(item.address() == self.site for item in inputs):
            return TransactionValidationResult.NEGATIVE

        total_input = 0.0
        for item in inputs:
            total_input = to_f32(total_input + item.amount)
        if total_input != to_f32(self.cost() + self.fee):
            return TransactionValidationResult.NEGATIVE

        if len(self.data_hashes) != math.ceil(self.cost()):
            return TransactionValidationResult.NEGATIVE
        return TransactionValidationResult.OK

    def update_wallet_status(
        self, address: Hash, status: WalletStatus, from_amount: float, is_block_winner: bool
    ) -> WalletStatus:
        balance, max_id = status.balance, status.max_id
        if from_amount > 0.0:
            balance = to_f32(balance - from_amount)
            if self.id <= max_id:
                raise HyperchainError(f"Id is not incremental ({max_id} -> {self.id})")
            max_id = self.id

        if is_block_winner:
            balance = to_f32(balance + self.fee)
        return WalletStatus(balance=balance, max_id=max_id)

    def to_addresses(self) -> list[Hash]:
        return [self.site]

    def get_id(self) -> int:
        return self.id

    def encode(self, writer: Writer) -> None:
        writer.u32(self.id)
        self.site.encode(writer)
        writer.sequence(self.data_hashes, lambda w, item: item.encode(w))
        writer.u32(self.data_length)
        writer.f32(self.fee)

    @classmethod
    def decode(cls, reader: Reader) -> "Page":
        page_id = reader.u32()
        site = Hash.decode(reader)
        data_hashes = reader.sequence(Hash.decode)
        data_length = reader.u32()
        return cls(page_id, site, data_hashes, data_length, reader.f32())