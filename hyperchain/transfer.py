"""Transactions that move coins between addresses."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from .codec import Reader, Writer, to_f32
from .errors import HyperchainError
from .hashing import Hash
from .transaction import Input, TransactionContent, TransactionValidationResult
from .wallet import WalletStatus


def _f32_sum(values: Iterable[float]) -> float:
    total = 0.0
    for value in values:
        total = to_f32(total + value)
    return total


@dataclass
class Output:
    """Coins paid to the address ``to``."""

    to: Hash
    amount: float

    def __post_init__(self) -> None:
        self.amount = to_f32(self.amount)

    def encode(self, writer: Writer) -> None:
        self.to.encode(writer)
        writer.f32(self.amount)

    @classmethod
    def decode(cls, reader: Reader) -> "Output":
        return cls(to=Hash.decode(reader), amount=reader.f32())


@dataclass
class Transfer(TransactionContent):
    """Pays the inputs out to the outputs, leaving ``fee`` to the block winner."""

    id: int
    outputs: list[Output] = field(default_factory=list)
    fee: float = 0.0

    def __post_init__(self) -> None:
        self.outputs = list(self.outputs)
        self.fee = to_f32(self.fee)

    def get_fee(self) -> float:
        return self.fee

    def validate(self, inputs: list[Input]) -> TransactionValidationResult:
        total_input = _f32_sum(item.amount for item in inputs)
        total_output = to_f32(_f32_sum(output.amount for output in self.outputs) + self.fee)
        if total_input != total_output:
            return TransactionValidationResult.NEGATIVE
        if total_output < 0.0 or self.fee < 0.0:
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

        for output in self.outputs:
            if output.to == address:
                balance = to_f32(balance + output.amount)

        if is_block_winner:
            balance = to_f32(balance + self.fee)
        return WalletStatus(balance=balance, max_id=max_id)

    def to_addresses(self) -> list[Hash]:
        return [output.to for output in self.outputs]

    def get_id(self) -> int:
        return self.id

    def encode(self, writer: Writer) -> None:
        writer.u32(self.id)
        writer.sequence(self.outputs, lambda w, output: output.encode(w))
        writer.f32(self.fee)

    @classmethod
    def decode(cls, reader: Reader) -> "Transfer":
        transfer_id = reader.u32()
        outputs = reader.sequence(Output.decode)
        return cls(id=transfer_id, outputs=outputs, fee=reader.f32())


class TransferBuilder:
    """Builds a :class:`Transfer` one output at a time."""

    def __init__(self, id: int, fee: float) -> None:
        self._id = id
        self._fee = fee
        self._outputs: list[Output] = []

    def add_output(self, to: Hash, amount: float) -> "TransferBuilder":
        self._outputs.append(Output(to, amount))
        return self

    def build(self) -> Transfer:
        return Transfer(self._id, list(self._outputs), self._fee)