"""Blocks, their validation and a builder for assembling them."""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field
from typing import Any, Optional

from .codec import Reader, Writer, to_f32
from .hashing import Hash, sha256_hash
from .merkle import calculate_merkle_root
from .page import Page
from .target import TARGET_LEN, calculate_target, hash_from_target
from .transaction import Transaction, TransactionValidationResult
from .transfer import Transfer
from .wallet import WalletStatus


def current_timestamp() -> int:
    """Milliseconds since the Unix epoch."""
    return time.time_ns() // 1_000_000


def merkle_root_for_transactions(
    transfers: list[Transaction], pages: list[Transaction]
) -> Hash:
    """Merkle root over the hashes of the transfers followed by the pages."""
    hashes = [transfer.hash() for transfer in transfers]
    hashes.extend(page.hash() for page in pages)
    return calculate_merkle_root(hashes)


class BlockValidationKind(enum.Enum):
    OK = "Ok"
    NOT_NEXT_BLOCK = "Not the next block in the chain"
    PREV_HASH = "Previous hash does not match"
    TIMESTAMP = "Timestamp not in a valid range"
    POW = "No valid proof or work"
    TARGET = "Incorrect target value"
    MERKLE_ROOT = "Incorrect merkle root"
    TRANSACTION = "Invalid transaction"
    BALANCE = "Insufficient balance"


@dataclass(frozen=True)
class BlockValidationResult:
    """Outcome of a block check, with the failing transaction result or address."""

    kind: BlockValidationKind
    transaction: Optional[TransactionValidationResult] = None
    address: Optional[Hash] = None

    def ok(self) -> bool:
        return self.kind is BlockValidationKind.OK

    def __str__(self) -> str:
        if self.kind is BlockValidationKind.TRANSACTION and self.transaction is not None:
            return str(self.transaction)
        return self.kind.value


_OK = BlockValidationResult(BlockValidationKind.OK)


@dataclass
class BlockHeader:
    """The hashed part of a block."""

    prev_hash: Hash
    block_id: int
    timestamp: int
    reward_to: Hash
    target: bytes
    transaction_merkle_root: Hash
    pow: int = 0

    def __post_init__(self) -> None:
        self.target = bytes(self.target)
        if len(self.target) != TARGET_LEN:
            raise ValueError(f"a target is {TARGET_LEN} bytes, got {len(self.target)}")

    def encode(self, writer: Writer) -> None:
        self.prev_hash.encode(writer)
        writer.u64(self.block_id)
        writer.u128(self.timestamp)
        self.reward_to.encode(writer)
        writer.raw(self.target)
        self.transaction_merkle_root.encode(writer)
        writer.u64(self.pow)

    @classmethod
    def decode(cls, reader: Reader) -> "BlockHeader":
        return cls(
            prev_hash=Hash.decode(reader),
            block_id=reader.u64(),
            timestamp=reader.u128(),
            reward_to=Hash.decode(reader),
            target=reader.raw(TARGET_LEN),
            transaction_merkle_root=Hash.decode(reader),
            pow=reader.u64(),
        )


@dataclass(repr=False)
class Block:
    """A header together with the page and transfer transactions it confirms."""

    header: BlockHeader
    pages: list[Transaction] = field(default_factory=list)
    transfers: list[Transaction] = field(default_factory=list)

    def __repr__(self) -> str:
        return (
            f"Block(block_id={self.header.block_id}, timestamp={self.header.timestamp}, "
            f"target={list(self.header.target)}, pow={self.header.pow})"
        )

    @classmethod
    def new(
        cls, chain: Any, reward_to: Any, transfers: list[Transaction], pages: list[Transaction]
    ) -> "Block":
        """A block on top of ``chain``, rewarding the wallet ``reward_to``."""
        sample_start, sample_end = chain.take_sample()
        target = calculate_target(sample_start, sample_end)
        top = chain.top()
        if top is None:
            block_id, prev_hash = 0, Hash.empty()
        else:
            block_id, prev_hash = top.header.block_id + 1, top.hash()

        transfers = list(transfers)
        pages = list(pages)
        header = BlockHeader(
            prev_hash=prev_hash,
            block_id=block_id,
            timestamp=current_timestamp(),
            reward_to=reward_to.address(),
            target=target,
            transaction_merkle_root=merkle_root_for_transactions(transfers, pages),
            pow=0,
        )
        return cls(header=header, pages=pages, transfers=transfers)

    @classmethod
    def new_blank(cls, chain: Any, reward_to: Any) -> "Block":
        return cls.new(chain, reward_to, [], [])

    def calculate_reward(self) -> float:
        return 10.0

    def hash(self) -> Hash:
        writer = Writer()
        self.header.encode(writer)
        return sha256_hash(writer.getvalue())

    def addresses_used(self) -> list[Hash]:
        """Every address the block touches, each once."""
        used = [self.header.reward_to]
        for transfer in self.transfers:
            used.extend(transfer.from_addresses())
            used.extend(output.to for output in transfer.header.content.outputs)
        for page in self.pages:
            used.extend(page.from_addresses())
        return list(dict.fromkeys(used))

    def update_wallet_status(self, address: Hash, status: WalletStatus) -> WalletStatus:
        is_block_winner = self.header.reward_to == address
        if is_block_winner:
            status = WalletStatus(
                balance=to_f32(status.balance + self.calculate_reward()),
                max_id=status.max_id,
            )
        for transfer in self.transfers:
            status = transfer.update_wallet_status(address, status, is_block_winner)
        for page in self.pages:
            status = page.update_wallet_status(address, status, is_block_winner)
        return status

    def transactions(self) -> list[Transaction]:
        """Transfers followed by pages."""
        return [*self.transfers, *self.pages]

    def _validate_transactions(self) -> BlockValidationResult:
        merkle_root = merkle_root_for_transactions(self.transfers, self.pages)
        if merkle_root != self.header.transaction_merkle_root:
            return BlockValidationResult(BlockValidationKind.MERKLE_ROOT)

        for transfer in self.transfers:
            result = transfer.validate_content()
            if result is not TransactionValidationResult.OK:
                return BlockValidationResult(BlockValidationKind.TRANSACTION, transaction=result)
        return _OK

    def validate_next(self, prev: "Block") -> BlockValidationResult:
        """Check that this block follows ``prev``; the first block always does."""
        if self.header.block_id > 0:
            if self.header.block_id != prev.header.block_id + 1:
                return BlockValidationResult(BlockValidationKind.NOT_NEXT_BLOCK)
            if self.header.prev_hash != prev.hash():
                return BlockValidationResult(BlockValidationKind.PREV_HASH)
            now = current_timestamp()
            if self.header.timestamp < prev.header.timestamp or self.header.timestamp > now:
                return BlockValidationResult(BlockValidationKind.TIMESTAMP)
        return _OK

    def validate_pow(self) -> BlockValidationResult:
        hash_number = int.from_bytes(self.hash().data(), "big")
        target_number = int.from_bytes(hash_from_target(self.header.target), "big")
        if hash_number < target_number:
            return _OK
        return BlockValidationResult(BlockValidationKind.POW)

    def validate_target(
        self, start_sample: Optional["Block"], end_sample: Optional["Block"]
    ) -> BlockValidationResult:
        if self.header.target == calculate_target(start_sample, end_sample):
            return _OK
        return BlockValidationResult(BlockValidationKind.TARGET)

    def validate_content(
        self, start_sample: Optional["Block"], end_sample: Optional["Block"]
    ) -> BlockValidationResult:
        for check in (
            self.validate_pow,
            lambda: self.validate_target(start_sample, end_sample),
            self._validate_transactions,
        ):
            result = check()
            if not result.ok():
                return result
        return _OK

    def encode(self, writer: Writer) -> None:
        self.header.encode(writer)
        writer.sequence(self.pages, lambda w, page: page.encode(w))
        writer.sequence(self.transfers, lambda w, transfer: transfer.encode(w))

    @classmethod
    def decode(cls, reader: Reader) -> "Block":
        header = BlockHeader.decode(reader)
        pages = reader.sequence(lambda r: Transaction.decode(r, Page))
        transfers = reader.sequence(lambda r: Transaction.decode(r, Transfer))
        return cls(header=header, pages=pages, transfers=transfers)

    def to_bytes(self) -> bytes:
        writer = Writer()
        self.encode(writer)
        return writer.getvalue()

    @classmethod
    def from_bytes(cls, data: bytes) -> "Block":
        return cls.decode(Reader(data))


class BlockBuilder:
    """Collects transactions for a block rewarding ``reward_to``."""

    def __init__(self, reward_to: Any) -> None:
        self._reward_to = reward_to
        self._transfers: list[Transaction] = []
        self._pages: list[Transaction] = []

    def add_transfer(self, transfer: Transaction) -> "BlockBuilder":
        self._transfers.append(transfer)
        return self

    def add_page(self, page: Transaction) -> "BlockBuilder":
        self._pages.append(page)
        return self

    def build(self, chain: Any) -> Block:
        return Block.new(chain, self._reward_to, list(self._transfers), list(self._pages))