"""Persistent blocks with per-block wallet metadata and chain queries."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator, Optional

from .block import Block
from .codec import Reader, Writer
from .errors import HyperchainError
from .hashing import Hash
from .storage import Storage
from .transaction import Transaction
from .wallet import WalletStatus


@dataclass(frozen=True)
class PageMetadata:
    """Whether a page update in a block was the site's first."""

    is_creation: bool


def _write_wallet(writer: Writer, entry: tuple[Hash, WalletStatus]) -> None:
    address, status = entry
    address.encode(writer)
    status.encode(writer)


def _read_wallet(reader: Reader) -> tuple[Hash, WalletStatus]:
    return Hash.decode(reader), WalletStatus.decode(reader)


def _write_page(writer: Writer, entry: tuple[Hash, PageMetadata]) -> None:
    address, metadata = entry
    address.encode(writer)
    writer.bool(metadata.is_creation)


def _read_page(reader: Reader) -> tuple[Hash, PageMetadata]:
    return Hash.decode(reader), PageMetadata(is_creation=reader.bool())


@dataclass
class BlockMetadata:
    """Wallet states after a block, and the sites it updated."""

    wallets: dict[Hash, WalletStatus] = field(default_factory=dict)
    page_updates: dict[Hash, PageMetadata] = field(default_factory=dict)

    def encode(self, writer: Writer) -> None:
        writer.sequence(
            sorted(self.wallets.items(), key=lambda entry: entry[0].data()), _write_wallet
        )
        writer.sequence(
            sorted(self.page_updates.items(), key=lambda entry: entry[0].data()), _write_page
        )

    @classmethod
    def decode(cls, reader: Reader) -> "BlockMetadata":
        wallets = dict(reader.sequence(_read_wallet))
        page_updates = dict(reader.sequence(_read_page))
        return cls(wallets=wallets, page_updates=page_updates)


class Ledger:
    """Blocks stored under ``path`` with their metadata under ``path/metadata``."""

    def __init__(self, path: Any) -> None:
        self._path = Path(path)
        self._metadata: Storage[BlockMetadata] = Storage(
            self._path / "metadata", lambda w, m: m.encode(w), BlockMetadata.decode
        )
        self._blocks: Storage[Block] = Storage(
            self._path, lambda w, b: b.encode(w), Block.decode
        )

    @property
    def path(self) -> Path:
        return self._path

    @property
    def next_top(self) -> int:
        """The id the next block on top of the chain will have."""
        return self._blocks.next_top

    def block(self, block_id: int) -> Optional[Block]:
        return self._blocks.get(block_id)

    def top(self) -> Optional[Block]:
        if self.next_top == 0:
            return None
        return self._blocks.get(self.next_top - 1)

    def blocks(self) -> Iterator[Block]:
        """Every block from the first to the top."""
        for block_id in range(self.next_top):
            block = self.block(block_id)
            if block is None:
                raise HyperchainError(f"Missing block {block_id}")
            yield block

    def store(self, block: Block, metadata: BlockMetadata) -> None:
        self._metadata.store(block.header.block_id, metadata)
        self._blocks.store(block.header.block_id, block)

    def truncate(self, new_size: int) -> None:
        self._metadata.truncate(new_size)
        self._blocks.truncate(new_size)

    def _metadata_at(self, block_id: int) -> BlockMetadata:
        metadata = self._metadata.get(block_id)
        if metadata is None:
            raise HyperchainError(f"Missing metadata for block {block_id}")
        return metadata

    def metadata_for_block(self, block: Block) -> BlockMetadata:
        """Metadata for ``block`` placed on top of the chain; the block is assumed valid."""
        wallets = {
            address: block.update_wallet_status(address, self.wallet_status(address))
            for address in block.addresses_used()
        }
        page_updates = {}
        for page in block.pages:
            site = page.header.content.site
            page_updates[site] = PageMetadata(is_creation=self.last_page_update(site) is None)
        return BlockMetadata(wallets=wallets, page_updates=page_updates)

    def wallet_status_up_to_block(self, to: int, address: Hash) -> WalletStatus:
        """The status of ``address`` after block ``to`` (clamped to the top)."""
        real_to = min(to + 1, self.next_top)
        for block_id in reversed(range(real_to)):
            metadata = self._metadata_at(block_id)
            if address in metadata.wallets:
                return metadata.wallets[address]
        return WalletStatus()

    def wallet_status(self, address: Hash) -> WalletStatus:
        if self.next_top == 0:
            return WalletStatus()
        return self.wallet_status_up_to_block(self.next_top - 1, address)

    def last_page_update(self, address: Hash) -> Optional[Block]:
        """The newest block holding a page update for the site ``address``."""
        for block_id in reversed(range(self.next_top)):
            if address in self._metadata_at(block_id).page_updates:
                return self._blocks.get(block_id)
        return None

    def page_updates(self, address: Hash) -> list[Transaction]:
        """Page updates sent by ``address`` since the site's creation, oldest first."""
        updates: list[Transaction] = []
        for block_id in reversed(range(self.next_top)):
            metadata = self._metadata_at(block_id)
            if address not in metadata.page_updates:
                continue

            block = self.block(block_id)
            if block is None:
                raise HyperchainError(f"Missing block {block_id}")
            updates.extend(
                page for page in reversed(block.pages) if address in page.from_addresses()
            )
            if metadata.page_updates[address].is_creation:
                break

        updates.reverse()
        return updates

    def find_transaction(self, transaction_id: Hash) -> Optional[tuple[Transaction, Block]]:
        """The confirmed transaction with this id and the block holding it."""
        for block in self.blocks():
            for transaction in (*block.transfers, *block.pages):
                if transaction.hash() == transaction_id:
                    return transaction, block
        return None

    def history(self, address: Hash) -> list[tuple[Transaction, Block]]:
        """Confirmed transactions touching ``address``, oldest first."""
        found: list[tuple[Transaction, Block]] = []
        for block in self.blocks():
            for transfer in block.transfers:
                if any(output.to == address for output in transfer.header.content.outputs) or (
                    address in transfer.from_addresses()
                ):
                    found.append((transfer, block))
            for page in block.pages:
                if address in page.from_addresses():
                    found.append((page, block))
        return found