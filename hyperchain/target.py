"""Compact difficulty targets and their adjustment over a block sample."""

from __future__ import annotations

import math
from typing import Any, Optional

from .config import BLOCK_SAMPLE_SIZE, BLOCK_TIME, HASH_LEN

TARGET_LEN = 4
MIN_TARGET = bytes((0x00, 0xFF, 0xFF, 0x20))
"""The easiest target; a block at this target has difficulty 1."""


def _check(target: Any) -> bytes:
    raw = bytes(target)
    if len(raw) != TARGET_LEN:
        raise ValueError(f"a target is {TARGET_LEN} bytes, got {len(raw)}")
    return raw


def _index(target: bytes) -> int:
    return min(target[3], 0x20)


def _coefficient(target: bytes) -> int:
    return int.from_bytes(target[:TARGET_LEN - 1], "big")


def _exp2(exponent: float) -> float:
    try:
        return 2.0 ** exponent
    except OverflowError:
        return math.inf


def _round_half_away(value: float) -> float:
    if not math.isfinite(value):
        return value
    return math.copysign(math.floor(abs(value) + 0.5), value)


def _saturate(value: float, bits: int) -> int:
    """Convert to an unsigned integer of ``bits`` bits, clamping out of range values."""
    if math.isnan(value) or value <= 0:
        return 0
    upper = (1 << bits) - 1
    if value >= upper:
        return upper
    return int(value)


def difficulty(target: Any) -> float:
    """How many times harder ``target`` is than :data:`MIN_TARGET`."""
    compact = _check(target)
    exponent_diff = float(8 * (_index(MIN_TARGET) - _index(compact)))
    coefficient = _coefficient(compact)
    if coefficient == 0:
        return math.inf
    return (_coefficient(MIN_TARGET) / coefficient) * _exp2(exponent_diff)


def hash_rate(diff: float, time: int) -> float:
    """Hashes per millisecond needed to mine a sample at ``diff`` in ``time`` ms."""
    return (diff * 256.0 * float(BLOCK_SAMPLE_SIZE)) / float(time)


def diff_for_hash_rate(hash_rate: float) -> float:
    """The difficulty giving one block per :data:`BLOCK_TIME` at ``hash_rate``."""
    return (hash_rate * float(BLOCK_TIME)) / 256.0


def compact_from_difficulty(diff: float) -> bytes:
    """The compact target closest to ``diff``."""
    if not diff > 0:
        raise ValueError(f"difficulty must be positive, got {diff!r}")
    exponent = _round_half_away(math.log2(diff))
    offset_diff = diff / _exp2(exponent)

    index = _saturate((256.0 - exponent) / 8.0, 8)
    coefficient = _saturate(_coefficient(MIN_TARGET) / offset_diff, 32)
    return bytes(
        (
            (coefficient >> 16) & 0xFF,
            (coefficient >> 8) & 0xFF,
            coefficient & 0xFF,
            index,
        )
    )


def hash_from_target(compact: Any) -> bytes:
    """Expand a compact target to the full hash value it stands for."""
    raw = _check(compact)
    start = HASH_LEN - _index(raw)
    if start + 3 > HASH_LEN:
        raise ValueError(f"target index {raw[3]} too small to expand")
    target = bytearray(HASH_LEN)
    target[start:start + 3] = raw[:3]
    return bytes(target)


def calculate_target(sample_start: Optional[Any], sample_end: Optional[Any]) -> bytes:
    """The target for the block following ``sample_end``.

    Without a full sample the minimum target is used; between adjustment
    points the previous target is kept.
    """
    if sample_start is None or sample_end is None:
        return MIN_TARGET

    if sample_end.header.block_id % BLOCK_SAMPLE_SIZE != 0:
        return bytes(sample_end.header.target)

    sample_time = sample_end.header.timestamp - sample_start.header.timestamp
    if sample_time < 0:
        raise ValueError("sample end is older than sample start")
    current_diff = difficulty(sample_end.header.target)
    current_hash_rate = hash_rate(current_diff, sample_time)
    return compact_from_difficulty(diff_for_hash_rate(current_hash_rate))