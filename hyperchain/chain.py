"""The block chain: adding blocks, merging branches and pending transactions."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional, Sequence

from .block import Block, BlockValidationKind, BlockValidationResult
from .codec import to_f32
from .config import BLOCK_SAMPLE_SIZE
from .data import DataUnit
from .errors import HyperchainError
from .hashing import Hash
from .ledger import Ledger
from .page import Page
from .transaction import Transaction, TransactionBuilder, TransactionValidationResult
from .transaction_queue import TransactionQueue
from .transfer import TransferBuilder
from .wallet import WalletStatus

logger = logging.getLogger(__name__)


class AddStatus(enum.Enum):
    OK = "ok"
    MORE_NEEDED = "more needed"
    DUPLICATE = "duplicate"
    INVALID = "invalid"


@dataclass(frozen=True)
class BlockChainAddResult:
    """Outcome of adding a block, with the validation failure when invalid."""

    status: AddStatus
    reason: Optional[BlockValidationResult] = None


class MergeStatus(enum.Enum):
    OK = "ok"
    EMPTY = "empty"
    ABOVE = "above"
    SHORT = "short"
    INVALID = "invalid"


@dataclass(frozen=True)
class BlockChainCanMergeResult:
    """Whether a branch can replace the top of the chain."""

    status: MergeStatus
    reason: Optional[BlockValidationResult] = None


_ADD_OK = BlockChainAddResult(AddStatus.OK)
_VALID = BlockValidationResult(BlockValidationKind.OK)


class BlockChain:
    """Blocks stored under ``path`` plus queues of pending transfers and pages."""

    def __init__(self, path: Any) -> None:
        self._path = Path(path)
        logger.info("Open chain in %s", self._path)
        self._ledger = Ledger(self._path)
        self._transfer_queue = TransactionQueue()
        self._page_queue = TransactionQueue()

    @property
    def path(self) -> Path:
        return self._path

    # Blocks

    def take_sample_at(self, block_id: int) -> tuple[Optional[Block], Optional[Block]]:
        """The blocks ``BLOCK_SAMPLE_SIZE`` apart ending at ``block_id``."""
        end = self.block(block_id)
        if end is None or end.header.block_id < BLOCK_SAMPLE_SIZE:
            return None, end
        start = self.block(end.header.block_id - BLOCK_SAMPLE_SIZE)
        return start, end

    def take_sample(self) -> tuple[Optional[Block], Optional[Block]]:
        top = self.top()
        if top is None:
            return None, None
        return self.take_sample_at(top.header.block_id)

    def add(self, block: Block) -> BlockChainAddResult:
        """Add ``block`` on top of the chain if it is the valid next block."""
        next_top = self._ledger.next_top
        block_id = block.header.block_id
        if block_id < next_top:
            if block == self.block(block_id):
                return BlockChainAddResult(AddStatus.DUPLICATE)
            return BlockChainAddResult(
                AddStatus.INVALID, BlockValidationResult(BlockValidationKind.NOT_NEXT_BLOCK)
            )

        if block_id > next_top:
            return BlockChainAddResult(AddStatus.MORE_NEEDED)

        result = self.validate_branch([block])
        if result.kind is BlockValidationKind.BALANCE:
            logger.warning(
                "Got invalid block, as %s has insufficient balance", result.address
            )
            if result.address is not None:
                self._transfer_queue.remove_from_address(result.address)
                self._page_queue.remove_from_address(result.address)
            return BlockChainAddResult(AddStatus.INVALID, result)
        if not result.ok():
            return BlockChainAddResult(AddStatus.INVALID, result)

        metadata = self._ledger.metadata_for_block(block)
        self._ledger.store(block, metadata)
        self.remove_from_transaction_queue(block)
        return _ADD_OK

    def walk(self) -> Iterator[Block]:
        """Every block from the first to the top."""
        return self._ledger.blocks()

    def block(self, block_id: int) -> Optional[Block]:
        return self._ledger.block(block_id)

    def top(self) -> Optional[Block]:
        return self._ledger.top()

    # Branches

    def _take_sample_of_branch_at(
        self, branch: Sequence[Block], block_id: int
    ) -> tuple[Optional[Block], Optional[Block]]:
        if block_id < BLOCK_SAMPLE_SIZE:
            return None, None

        branch_start = branch[0].header.block_id

        def block_at(wanted: int) -> Optional[Block]:
            if wanted >= branch_start:
                offset = wanted - branch_start
                return branch[offset] if offset < len(branch) else None
            return self.block(wanted)

        return block_at(block_id - BLOCK_SAMPLE_SIZE), block_at(block_id)

    def validate_branch(self, branch: Sequence[Block]) -> BlockValidationResult:
        """Check balances and linkage of ``branch`` placed on the chain below it."""
        if not branch:
            raise ValueError("branch must not be empty")

        bottom_id = branch[0].header.block_id
        last_block_id = 0 if bottom_id == 0 else bottom_id - 1
        last_block = self.block(last_block_id)
        wallets: dict[Hash, WalletStatus] = {}

        for block in branch:
            for address in block.addresses_used():
                if address not in wallets:
                    wallets[address] = self.get_wallet_status_up_to_block(
                        last_block_id, address
                    )
                new_status = block.update_wallet_status(address, wallets[address])
                if new_status.balance < 0.0:
                    return BlockValidationResult(BlockValidationKind.BALANCE, address=address)
                wallets[address] = new_status

            if last_block is not None:
                sample_start, sample_end = self._take_sample_of_branch_at(
                    branch, last_block.header.block_id
                )
                result = block.validate_next(last_block)
                if not result.ok():
                    return result
                result = block.validate_content(sample_start, sample_end)
                if not result.ok():
                    return result

            last_block = block

        return _VALID

    def can_merge_branch(self, branch: Sequence[Block]) -> BlockChainCanMergeResult:
        if not branch:
            return BlockChainCanMergeResult(MergeStatus.EMPTY)

        next_top = self._ledger.next_top
        if branch[0].header.block_id > next_top:
            return BlockChainCanMergeResult(MergeStatus.ABOVE)
        if branch[-1].header.block_id < next_top:
            return BlockChainCanMergeResult(MergeStatus.SHORT)

        result = self.validate_branch(branch)
        if result.ok():
            return BlockChainCanMergeResult(MergeStatus.OK)
        return BlockChainCanMergeResult(MergeStatus.INVALID, result)

    def merge_branch(self, branch: Sequence[Block]) -> None:
        """Replace the top of the chain with ``branch``; raises if it cannot merge."""
        branch = list(branch)
        result = self.can_merge_branch(branch)
        if result.status is not MergeStatus.OK:
            raise HyperchainError(f"Cannot merge branch ({result.status.value})")

        self._ledger.truncate(branch[0].header.block_id)
        for block in branch:
            added = self.add(block)
            if added.status is not AddStatus.OK:
                raise HyperchainError(
                    f"Failed to add block {block.header.block_id} ({added.status.value})"
                )

    # Wallets and pages

    def get_wallet_status(self, address: Hash) -> WalletStatus:
        return self._ledger.wallet_status(address)

    def get_wallet_status_up_to_block(self, to: int, address: Hash) -> WalletStatus:
        return self._ledger.wallet_status_up_to_block(to, address)

    def last_page_update(self, address: Hash) -> Optional[Block]:
        return self._ledger.last_page_update(address)

    def get_page_updates(self, address: Hash) -> list[Transaction]:
        return self._ledger.page_updates(address)

    # Pending transactions

    def _wallet_status_after_queue(self, address: Hash) -> WalletStatus:
        status = self.get_wallet_status(address)
        status = self._transfer_queue.update_wallet_status(address, status)
        return self._page_queue.update_wallet_status(address, status)

    def _new_transaction(self, inputs: Sequence[tuple[Any, float]], content: Any) -> Transaction:
        builder = TransactionBuilder(content)
        for wallet, amount in inputs:
            builder.add_input(wallet, amount)

        transaction = builder.build()
        if transaction.validate_content() is not TransactionValidationResult.OK:
            raise HyperchainError("Invalid content")

        for wallet, _ in inputs:
            address = wallet.address()
            transaction.update_wallet_status(
                address, self._wallet_status_after_queue(address), False
            )
        return transaction

    def _next_transaction_id(self, inputs: Iterable[tuple[Any, float]]) -> int:
        max_id = max(
            (self._wallet_status_after_queue(wallet.address()).max_id for wallet, _ in inputs),
            default=0,
        )
        return max_id + 1

    def new_transfer(
        self,
        inputs: Sequence[tuple[Any, float]],
        outputs: Iterable[tuple[Hash, float]],
        fee: float,
    ) -> Transaction:
        """A signed transfer from private wallets, numbered after pending ones."""
        inputs = list(inputs)
        builder = TransferBuilder(self._next_transaction_id(inputs), fee)
        for to, amount in outputs:
            builder.add_output(to, amount)
        return self._new_transaction(inputs, builder.build())

    def new_page(self, sender: Any, data: DataUnit, fee: float) -> Transaction:
        """A signed page update publishing ``data`` for the site of ``sender``."""
        status = self._wallet_status_after_queue(sender.address())
        page = Page.new_from_data(status.max_id + 1, sender.address(), data, fee)
        total_output = to_f32(page.cost() + page.fee)
        return self._new_transaction([(sender, total_output)], page)

    def _check_transaction(self, transaction: Transaction) -> None:
        for address in transaction.from_addresses():
            status = self._wallet_status_after_queue(address)
            new_status = transaction.update_wallet_status(address, status, False)
            if new_status.balance < 0.0:
                raise HyperchainError("Negative balance")

    def push_transfer_queue(self, transaction: Transaction) -> None:
        self._check_transaction(transaction)
        self._transfer_queue.push(transaction)

    def push_page_queue(self, transaction: Transaction) -> None:
        self._check_transaction(transaction)
        self._page_queue.push(transaction)

    def next_transfers_in_queue(self, count: int) -> list[Transaction]:
        return self._transfer_queue.get_next(count)

    def next_pages_in_queue(self, count: int) -> list[Transaction]:
        return self._page_queue.get_next(count)

    def remove_from_transaction_queue(self, block: Block) -> None:
        self._transfer_queue.remove_in_block(block.transfers)
        self._page_queue.remove_in_block(block.pages)

    # Lookups

    def find_transaction_in_queue(self, transaction_id: Hash) -> Optional[Transaction]:
        found = self._transfer_queue.find(transaction_id)
        if found is not None:
            return found
        return self._page_queue.find(transaction_id)

    def find_transaction_in_chain(
        self, transaction_id: Hash
    ) -> Optional[tuple[Transaction, Block]]:
        return self._ledger.find_transaction(transaction_id)

    def find_transaction(
        self, transaction_id: Hash
    ) -> Optional[tuple[Transaction, Optional[Block]]]:
        """A pending or confirmed transaction, with its block when confirmed."""
        pending = self.find_transaction_in_queue(transaction_id)
        if pending is not None:
            return pending, None
        return self.find_transaction_in_chain(transaction_id)

    def get_transaction_history(
        self, address: Hash
    ) -> list[tuple[Transaction, Optional[Block]]]:
        """Transactions touching ``address``, newest first, pending ones included."""
        history: list[tuple[Transaction, Optional[Block]]] = list(
            self._ledger.history(address)
        )
        history.extend(
            (transfer, None)
            for transfer in self._transfer_queue
            if any(output.to == address for output in transfer.header.content.outputs)
            or address in transfer.from_addresses()
        )
        history.extend(
            (page, None) for page in self._page_queue if address in page.from_addresses()
        )
        history.reverse()
        return history