"""Proof of work search."""

from __future__ import annotations

from .block import Block


def mine_block(block: Block) -> Block:
    """Increase the block's pow counter until its hash meets the target."""
    while not block.validate_pow().ok():
        block.header.pow += 1
    return block