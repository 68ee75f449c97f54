from dataclasses import replace

import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

from hyperchain.block import (
    Block,
    BlockBuilder,
    BlockValidationKind,
    BlockValidationResult,
    merkle_root_for_transactions,
)
from hyperchain.hashing import Hash, Signature, sha256_hash
from hyperchain.miner import mine_block
from hyperchain.target import MIN_TARGET
from hyperchain.transaction import TransactionBuilder, TransactionValidationResult
from hyperchain.transfer import TransferBuilder
from hyperchain.wallet import WalletStatus


class _Wallet:
    def __init__(self):
        self._key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        self._numbers = self._key.private_numbers()

    def public_key(self):
        return Signature(self._numbers.public_numbers.n.to_bytes(256, "little"))

    def public_exponent(self):
        return self._numbers.public_numbers.e.to_bytes(3, "little")

    def address(self):
        return sha256_hash(self.public_key())

    def sign(self, digest):
        n = self._numbers.public_numbers.n
        padded = b"\x00\x01" + b"\xff" * (256 - 3 - len(digest)) + b"\x00" + bytes(digest)
        value = pow(int.from_bytes(padded, "big"), self._numbers.d, n)
        return value.to_bytes(256, "big")


class _Chain:
    def __init__(self, *blocks):
        self._blocks = list(blocks)

    def top(self):
        return self._blocks[-1] if self._blocks else None

    def take_sample(self):
        return None, self.top()


@pytest.fixture(scope="module")
def wallet():
    return _Wallet()


@pytest.fixture(scope="module")
def other():
    return _Wallet()


def _transfer(wallet, other, output=4.0, fee=1.0, amount=5.0):
    return (
        TransactionBuilder(TransferBuilder(1, fee).add_output(other.address(), output).build())
        .add_input(wallet, amount)
        .build()
    )


def _unmined(block):
    while block.validate_pow().ok():
        block.header.pow += 1
    return block


def test_new_blank_on_empty_chain(wallet):
    block = Block.new_blank(_Chain(), wallet)
    assert block.header.block_id == 0
    assert block.header.prev_hash == Hash.empty()
    assert block.header.target == MIN_TARGET
    assert block.header.transaction_merkle_root == Hash.empty()
    assert block.header.pow == 0
    assert block.header.reward_to == wallet.address()


def test_new_block_follows_top(wallet):
    first = Block.new_blank(_Chain(), wallet)
    second = Block.new_blank(_Chain(first), wallet)
    assert second.header.block_id == 1
    assert second.header.prev_hash == first.hash()
    assert second.validate_next(first).ok()


def test_block_verify(wallet, other):
    block = BlockBuilder(wallet).add_transfer(_transfer(wallet, other)).build(_Chain())
    block = _unmined(block)

    assert not block.validate_pow().ok()
    assert block.validate_target(None, None).ok()
    assert not block.validate_content(None, None).ok()

    block = mine_block(block)
    assert block.validate_pow().ok()
    assert block.validate_content(None, None).ok()

    status = block.update_wallet_status(wallet.address(), WalletStatus())
    assert status.balance == block.calculate_reward() - 4.0
    assert status.max_id == 1

    status = block.update_wallet_status(other.address(), WalletStatus())
    assert status.balance == 4.0
    assert status.max_id == 0

    used = block.addresses_used()
    assert len(used) == 2
    assert wallet.address() in used
    assert other.address() in used


def test_reward_is_fixed(wallet):
    assert Block.new_blank(_Chain(), wallet).calculate_reward() == 10.0


def test_merkle_root_mismatch(wallet, other):
    block = BlockBuilder(wallet).add_transfer(_transfer(wallet, other)).build(_Chain())
    block.header.transaction_merkle_root = Hash.empty()
    block = mine_block(block)
    assert block.validate_content(None, None).kind is BlockValidationKind.MERKLE_ROOT


def test_invalid_transaction(wallet, other):
    bad = _transfer(wallet, other, output=4.0, fee=0.5, amount=5.0)
    block = mine_block(BlockBuilder(wallet).add_transfer(bad).build(_Chain()))
    result = block.validate_content(None, None)
    assert result.kind is BlockValidationKind.TRANSACTION
    assert result.transaction is TransactionValidationResult.NEGATIVE
    assert str(result) == "Can't have negitive transfer amounts"


def test_wrong_target(wallet):
    block = Block.new_blank(_Chain(), wallet)
    block.header.target = bytes([0x00, 0xFF, 0xFF, 0x1F])
    assert block.validate_target(None, None).kind is BlockValidationKind.TARGET


def test_validate_next_failures(wallet):
    first = Block.new_blank(_Chain(), wallet)
    second = Block.new_blank(_Chain(first), wallet)

    skipped = Block(replace(second.header, block_id=5))
    assert skipped.validate_next(first).kind is BlockValidationKind.NOT_NEXT_BLOCK

    wrong_prev = Block(replace(second.header, prev_hash=Hash.empty()))
    assert wrong_prev.validate_next(first).kind is BlockValidationKind.PREV_HASH

    older = Block(replace(second.header, timestamp=first.header.timestamp - 1))
    assert older.validate_next(first).kind is BlockValidationKind.TIMESTAMP

    future = Block(replace(second.header, timestamp=second.header.timestamp + 10**9))
    assert future.validate_next(first).kind is BlockValidationKind.TIMESTAMP


def test_first_block_always_follows(wallet):
    first = Block.new_blank(_Chain(), wallet)
    unrelated = Block(replace(first.header, block_id=7))
    assert first.validate_next(unrelated).ok()


def test_builder_merkle_root_and_order(wallet, other):
    transfer = _transfer(wallet, other)
    block = BlockBuilder(wallet).add_transfer(transfer).build(_Chain())
    assert block.header.transaction_merkle_root == merkle_root_for_transactions([transfer], [])
    assert block.transactions() == [transfer]


def test_empty_merkle_root():
    assert merkle_root_for_transactions([], []) == Hash.empty()


def test_round_trip(wallet, other):
    block = mine_block(BlockBuilder(wallet).add_transfer(_transfer(wallet, other)).build(_Chain()))
    decoded = Block.from_bytes(block.to_bytes())
    assert decoded == block
    assert decoded.hash() == block.hash()


def test_hash_depends_on_pow(wallet):
    block = Block.new_blank(_Chain(), wallet)
    before = block.hash()
    block.header.pow += 1
    assert block.hash() != before


def test_result_messages():
    assert str(BlockValidationResult(BlockValidationKind.OK)) == "Ok"
    assert str(BlockValidationResult(BlockValidationKind.BALANCE, address=Hash.empty())) == (
        "Insufficient balance"
    )
    assert str(BlockValidationResult(BlockValidationKind.POW)) == "No valid proof or work"


def test_repr_shows_block_id(wallet):
    block = Block.new_blank(_Chain(), wallet)
    assert "block_id=0" in repr(block)


def test_bad_target_length_rejected(wallet):
    block = Block.new_blank(_Chain(), wallet)
    with pytest.raises(ValueError):
        replace(block.header, target=b"\x00")
    assert block.header.target == MIN_TARGET