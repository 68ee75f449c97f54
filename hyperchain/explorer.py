"""Data behind the block explorer's pages, fetched from the service."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from . import base62
from .block import Block
from .codec import DecodeError, to_f32
from .data import CreatePageData
from .service.command import (
    BalanceCommand,
    BlocksCommand,
    BlocksResponse,
    PageDataCommand,
    PageDataResponse,
    PageUpdatesCommand,
    PageUpdatesResponse,
    StatisticsCommand,
    StatisticsResponse,
    TopBlockCommand,
    TransactionHistoryCommand,
    TransactionHistoryResponse,
    WalletStatusResponse,
)
from .target import difficulty
from .transaction import Transaction
from .variant import is_page, is_transfer
from .wallet import WalletStatus

logger = logging.getLogger(__name__)


def _inputs(transaction: Transaction) -> list[dict[str, Any]]:
    return [
        {"address": str(item.address()), "amount": item.amount}
        for item in transaction.header.inputs
    ]


def _transfer_data(transfer: Transaction, block_id: str) -> dict[str, Any]:
    content = transfer.header.content
    total_amount = 0.0
    for output in content.outputs:
        total_amount = to_f32(total_amount + output.amount)
    return {
        "type": "Transfer",
        "id": str(transfer.hash()),
        "inputs": _inputs(transfer),
        "outputs": [
            {"address": str(output.to), "amount": output.amount} for output in content.outputs
        ],
        "total_amount": total_amount,
        "fee": content.fee,
        "block": block_id,
    }


def _page_data(page: Transaction, block_id: str) -> dict[str, Any]:
    content = page.header.content
    return {
        "type": "Page Update",
        "id": str(page.hash()),
        "inputs": _inputs(page),
        "outputs": [{"address": str(content.site), "amount": content.cost()}],
        "data": [{"hash": str(data_hash)} for data_hash in content.data_hashes],
        "amount": content.cost(),
        "fee": content.fee,
        "block": block_id,
        "data_size": to_f32(to_f32(content.data_length) / (1000.0 * 1000.0)),
        "chunk_count": len(content.data_hashes),
    }


def transaction_data(transaction: Transaction, block: Optional[Block] = None) -> dict[str, Any]:
    """Template data for a transaction and the block holding it, if any."""
    block_id = "Pending" if block is None else str(block.header.block_id)
    if is_transfer(transaction):
        return _transfer_data(transaction, block_id)
    if is_page(transaction):
        return _page_data(transaction, block_id)
    raise TypeError(f"unsupported transaction content {type(transaction.header.content).__name__}")


def _top_block_id(client: Any) -> int:
    response = client.send(TopBlockCommand())
    if isinstance(response, BlocksResponse) and len(response.blocks) == 1:
        return response.blocks[0].header.block_id
    return 0


def block_data(client: Any, block_id: Any) -> dict[str, Any]:
    """Template data for one block; raises :class:`LookupError` if it is unknown."""
    block_id = int(block_id)
    top_block_id = _top_block_id(client)
    response = client.send(BlocksCommand(block_id, block_id))
    if not (isinstance(response, BlocksResponse) and len(response.blocks) == 1):
        raise LookupError("Error: Block not found")

    block = response.blocks[0]
    header = block.header
    return {
        "id": block_id,
        "next_block_id": block_id + 1,
        "last_block_id": block_id - 1 if block_id > 0 else None,
        "top_block_id": top_block_id,
        "timestamp": header.timestamp // 1000,
        "winner": str(header.reward_to),
        "merkle_root": str(header.transaction_merkle_root),
        "difficulty": difficulty(header.target),
        "pow": header.pow,
        "transactions": [transaction_data(item, block) for item in block.transactions()],
    }


def wallet_data(client: Any, address: str) -> dict[str, Any]:
    """Template data for the wallet with the base-62 ``address``."""
    raw = base62.decode(address)

    response = client.send(BalanceCommand(raw))
    status = response.status if isinstance(response, WalletStatusResponse) else WalletStatus()

    response = client.send(TransactionHistoryCommand(raw))
    history = response.history if isinstance(response, TransactionHistoryResponse) else []

    return {
        "address": address,
        "balance": status.balance,
        "transaction_count": len(history),
        "history": [transaction_data(item, block) for item, block in history],
    }


def index_data(client: Any) -> dict[str, Any]:
    """Template data for the front page; raises :class:`LookupError` without statistics."""
    response = client.send(StatisticsCommand())
    if not isinstance(response, StatisticsResponse):
        raise LookupError("Error: Unable to fetch statistics")
    stats = response.statistics
    return {
        "hash_rate": stats.hash_rate,
        "known_chunks": stats.known_chunks,
        "replication_percent": stats.replication * 100.0,
    }


def render_updates(
    client: Any, site: str, page_name: str, updates: Iterable[Transaction]
) -> bytes:
    """The newest content of ``page_name`` after applying the site's updates in order."""
    result = b""
    for update in updates:
        update_id = update.hash()
        response = client.send(PageDataCommand(update_id.data()))
        if not isinstance(response, PageDataResponse):
            logger.warning("[%s] [%s] No data found for update '%s'", site, page_name, update_id)
            continue

        data = response.data
        if isinstance(data, CreatePageData):
            logger.info("[%s] [%s] new page of %d bytes", site, page_name, len(data.page))
            if data.name == page_name:
                result = bytes(data.page)

    if not result:
        return f"Page '{page_name}' not found".encode()
    return result


def site_page(client: Any, site: str, page: str = "index.html") -> bytes:
    """The body served for ``page`` of the site with the base-62 address ``site``."""
    logger.info("[%s] Rendering new page %s", site, page)
    unknown = f"Unkown site: {site}".encode()
    try:
        site_id = base62.decode(site)
    except (ValueError, KeyError, IndexError, DecodeError):
        return unknown

    response = client.send(PageUpdatesCommand(site_id))
    if not isinstance(response, PageUpdatesResponse):
        return unknown

    logger.info("[%s] [%s] Got %d updates", site, page, len(response.updates))
    return render_updates(client, site, page, response.updates)