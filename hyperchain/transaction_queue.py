"""Pending transactions ordered by fee per byte and dependencies."""

from __future__ import annotations

from typing import Iterable, Iterator, Optional

from .hashing import Hash
from .transaction import Transaction
from .wallet import WalletStatus


def is_dependency(transaction: Transaction, dependency: Transaction) -> bool:
    """Whether ``transaction`` shares an address with, and comes after, ``dependency``."""
    ours = transaction.addresses_used()
    theirs = dependency.addresses_used()
    affects_us = any(address in theirs for address in ours)
    return affects_us and transaction.get_id() > dependency.get_id()


class TransactionQueue:
    """Transactions waiting to be put into a block."""

    def __init__(self) -> None:
        self._queue: list[tuple[float, Transaction]] = []

    def __iter__(self) -> Iterator[Transaction]:
        return (transaction for _, transaction in self._queue)

    def __len__(self) -> int:
        return len(self._queue)

    def _position_for(self, priority: float, transaction: Transaction) -> int:
        after_better = next(
            (index for index, (queued, _) in enumerate(self._queue) if queued < priority), 0
        )
        after_dependency = max(
            (
                index + 1
                for index, (_, queued) in enumerate(self._queue)
                if is_dependency(transaction, queued)
            ),
            default=0,
        )
        return max(after_better, after_dependency)

    def push(self, transaction: Transaction) -> None:
        priority = transaction.fee_per_byte()
        self._queue.insert(self._position_for(priority, transaction), (priority, transaction))

    def get_next(self, count: int) -> list[Transaction]:
        return [transaction for _, transaction in self._queue[:max(count, 0)]]

    def remove_in_block(self, transactions: Iterable[Transaction]) -> None:
        for transaction in transactions:
            for index, (_, queued) in enumerate(self._queue):
                if queued == transaction:
                    del self._queue[index]
                    break

    def remove_from_address(self, address: Hash) -> None:
        """Drop every pending transaction paid for by ``address``."""
        self._queue = [
            (priority, transaction)
            for priority, transaction in self._queue
            if address not in transaction.from_addresses()
        ]

    def update_wallet_status(self, address: Hash, status: WalletStatus) -> WalletStatus:
        for transaction in self:
            status = transaction.update_wallet_status(address, status, False)
        return status

    def find(self, transaction_id: Hash) -> Optional[Transaction]:
        return next((t for t in self if t.hash() == transaction_id), None)