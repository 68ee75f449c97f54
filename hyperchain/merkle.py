"""Merkle root computation over a list of byte strings."""

from __future__ import annotations

import hashlib
from typing import Any, Sequence

from .hashing import Hash


def _sha256(*parts: bytes) -> bytes:
    hasher = hashlib.sha256()
    for part in parts:
        hasher.update(part)
    return hasher.digest()


def _reduce(nodes: list[bytes]) -> list[bytes]:
    return [
        _sha256(*nodes[start:start + 2]) if start + 1 < len(nodes) else nodes[start]
        for start in range(0, len(nodes), 2)
    ]


def calculate_merkle_root(data: Sequence[Any]) -> Hash:
    """Return the merkle root; an empty list gives the empty hash.

    Leaves are the SHA-256 of each item; an unpaired node is carried up as is.
    """
    if not data:
        return Hash.empty()

    nodes = [_sha256(bytes(item)) for item in data]
    while len(nodes) != 1:
        nodes = _reduce(nodes)
    return Hash(nodes[0])