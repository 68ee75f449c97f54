import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

from hyperchain.codec import Reader, Writer, to_f32
from hyperchain.errors import HyperchainError
from hyperchain.hashing import Signature
from hyperchain.transaction import TransactionBuilder, TransactionValidationResult
from hyperchain.transfer import Output, Transfer, TransferBuilder
from hyperchain.wallet import Wallet, WalletStatus

KEY_BYTES = 256


class _KeyWallet(Wallet):
    def __init__(self, key):
        self._key = key

    def public_key(self):
        n = self._key.public_key().public_numbers().n
        return Signature(n.to_bytes(KEY_BYTES, "little"))

    def public_exponent(self):
        return self._key.public_key().public_numbers().e.to_bytes(3, "little")

    def sign(self, digest):
        numbers = self._key.private_numbers()
        n = numbers.public_numbers.n
        padded = b"\x00\x01" + b"\xff" * (KEY_BYTES - 3 - len(digest)) + b"\x00" + digest
        value = pow(int.from_bytes(padded, "big"), numbers.d, n)
        return value.to_bytes(KEY_BYTES, "big")


@pytest.fixture(scope="module")
def wallets():
    return tuple(
        _KeyWallet(rsa.generate_private_key(public_exponent=65537, key_size=2048))
        for _ in range(2)
    )


def _f32_add(a, b):
    return to_f32(to_f32(a) + to_f32(b))


def test_balanced_transfer_is_valid(wallets):
    wallet, other = wallets
    transfer = (
        TransactionBuilder(TransferBuilder(0, 0.2).add_output(other.address(), 2.4).build())
        .add_input(wallet, _f32_add(2.4, 0.2))
        .build()
    )
    transfer.hash()
    assert transfer.validate_content() is TransactionValidationResult.OK


def test_negative_amounts_rejected(wallets):
    wallet, other = wallets
    transfer = (
        TransactionBuilder(TransferBuilder(1, 0.0).add_output(other.address(), -1.6).build())
        .add_input(wallet, -1.6)
        .build()
    )
    assert transfer.validate_content() is TransactionValidationResult.NEGATIVE


def test_negative_fee_rejected(wallets):
    wallet, other = wallets
    transfer = (
        TransactionBuilder(TransferBuilder(2, -0.0001).add_output(other.address(), 0.0).build())
        .add_input(wallet, -0.0001)
        .build()
    )
    assert transfer.validate_content() is TransactionValidationResult.NEGATIVE


def test_multiple_inputs_and_outputs(wallets):
    wallet, other = wallets
    transfer = (
        TransactionBuilder(
            TransferBuilder(2, 1.0)
            .add_output(other.address(), 5.0)
            .add_output(wallet.address(), 5.0)
            .build()
        )
        .add_input(wallet, 5.0)
        .add_input(other, 6.0)
        .build()
    )
    assert transfer.validate_content() is TransactionValidationResult.OK


def test_inputs_short_of_outputs_rejected(wallets):
    wallet, other = wallets
    transfer = (
        TransactionBuilder(
            TransferBuilder(2, 1.0)
            .add_output(other.address(), 5.0)
            .add_output(wallet.address(), 5.0)
            .build()
        )
        .add_input(wallet, 5.0)
        .add_input(other, 5.0)
        .build()
    )
    assert transfer.validate_content() is TransactionValidationResult.NEGATIVE


def test_builder_collects_outputs(wallets):
    wallet, other = wallets
    transfer = TransferBuilder(3, 0.5).add_output(other.address(), 1.0).add_output(wallet.address(), 2.0).build()
    assert transfer == Transfer(3, [Output(other.address(), 1.0), Output(wallet.address(), 2.0)], 0.5)
    assert transfer.to_addresses() == [other.address(), wallet.address()]
    assert transfer.get_id() == 3
    assert transfer.get_fee() == 0.5


def test_update_wallet_status_for_receiver(wallets):
    wallet, other = wallets
    transfer = TransferBuilder(1, 1.0).add_output(other.address(), 4.0).build()
    status = transfer.update_wallet_status(other.address(), WalletStatus(1.0, 3), 0.0, False)
    assert status == WalletStatus(5.0, 3)


def test_update_wallet_status_for_sender_and_winner(wallets):
    wallet, other = wallets
    transfer = TransferBuilder(1, 1.0).add_output(other.address(), 4.0).build()
    status = transfer.update_wallet_status(wallet.address(), WalletStatus(10.0, 0), 5.0, True)
    assert status == WalletStatus(6.0, 1)


def test_update_wallet_status_does_not_mutate(wallets):
    wallet, other = wallets
    transfer = TransferBuilder(1, 0.0).add_output(other.address(), 4.0).build()
    original = WalletStatus(1.0, 0)
    transfer.update_wallet_status(other.address(), original, 0.0, False)
    assert original == WalletStatus(1.0, 0)


def test_repeated_id_rejected(wallets):
    wallet, other = wallets
    transfer = TransferBuilder(2, 0.0).add_output(other.address(), 1.0).build()
    with pytest.raises(HyperchainError) as info:
        transfer.update_wallet_status(wallet.address(), WalletStatus(5.0, 2), 1.0, False)
    assert str(info.value) == "Error: Id is not incremental (2 -> 2)"


def test_round_trip(wallets):
    wallet, other = wallets
    transfer = TransferBuilder(7, 0.25).add_output(other.address(), 1.5).add_output(wallet.address(), 3.0).build()
    writer = Writer()
    transfer.encode(writer)
    reader = Reader(writer.getvalue())
    assert Transfer.decode(reader) == transfer
    assert reader.remaining() == 0