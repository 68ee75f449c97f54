import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

from hyperchain.codec import Reader, Writer
from hyperchain.hashing import Signature, sha256_hash
from hyperchain.wallet import PublicWallet, WalletStatus, WalletValidationResult


@pytest.fixture(scope="module")
def private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


def _public_parts(private_key):
    numbers = private_key.public_key().public_numbers()
    return numbers.n.to_bytes(256, "little"), numbers.e.to_bytes(3, "little")


def _raw_sign(private_key, digest):
    numbers = private_key.private_numbers()
    n = numbers.public_numbers.n
    size = (n.bit_length() + 7) // 8
    encoded = b"\x00\x01" + b"\xff" * (size - 3 - len(digest)) + b"\x00" + digest
    value = pow(int.from_bytes(encoded, "big"), numbers.d, n)
    return value.to_bytes(size, "big")


def test_wallet_status_defaults():
    status = WalletStatus()
    assert (status.balance, status.max_id) == (0.0, 0)


def test_wallet_status_wire_format():
    writer = Writer()
    WalletStatus(1.0, 2).encode(writer)
    assert writer.getvalue() == b"\x00\x00\x80\x3f\x02\x00\x00\x00"


def test_wallet_status_round_trip():
    writer = Writer()
    WalletStatus(12.5, 7).encode(writer)
    assert WalletStatus.decode(Reader(writer.getvalue())) == WalletStatus(12.5, 7)


def test_validation_result_text(private_key):
    modulus, e = _public_parts(private_key)
    wallet = PublicWallet(modulus, e)
    digest = sha256_hash(b"text").data()
    good = wallet.verify(digest, _raw_sign(private_key, digest))
    bad = wallet.verify(digest, bytes(256))
    assert str(good) == "Ok"
    assert str(bad) == "Signature not valid"


def test_address_is_hash_of_public_key(private_key):
    modulus, _ = _public_parts(private_key)
    wallet = PublicWallet.from_public_key(modulus)
    assert wallet.public_key() == Signature(modulus)
    assert wallet.address() == sha256_hash(Signature(modulus))


def test_same_key_same_address(private_key):
    modulus, e = _public_parts(private_key)
    assert PublicWallet(modulus, e).address() == PublicWallet.from_public_key(modulus).address()


def test_verify_valid_signature(private_key):
    modulus, e = _public_parts(private_key)
    wallet = PublicWallet(Signature(modulus), e)
    digest = sha256_hash(b"transaction").data()
    signature = _raw_sign(private_key, digest)
    assert wallet.verify(digest, signature) is WalletValidationResult.OK
    assert wallet.verify(digest, Signature(signature)) is WalletValidationResult.OK


def test_verify_rejects_other_digest(private_key):
    modulus, e = _public_parts(private_key)
    wallet = PublicWallet(modulus, e)
    signature = _raw_sign(private_key, sha256_hash(b"one").data())
    result = wallet.verify(sha256_hash(b"two").data(), signature)
    assert result is WalletValidationResult.SIGNATURE


def test_verify_rejects_garbage(private_key):
    modulus, e = _public_parts(private_key)
    wallet = PublicWallet(modulus, e)
    result = wallet.verify(sha256_hash(b"x").data(), bytes(256))
    assert result is WalletValidationResult.SIGNATURE


def test_verify_without_exponent_raises(private_key):
    modulus, _ = _public_parts(private_key)
    with pytest.raises(ValueError):
        PublicWallet.from_public_key(modulus).verify(b"x", bytes(256))


def test_bad_exponent_length_rejected(private_key):
    modulus, _ = _public_parts(private_key)
    with pytest.raises(ValueError):
        PublicWallet(modulus, b"\x01\x00")


class _Chain:
    def __init__(self):
        self.asked = []

    def get_wallet_status(self, address):
        self.asked.append(address)
        return WalletStatus(3.0, 1)


def test_get_status_asks_chain_for_address(private_key):
    modulus, e = _public_parts(private_key)
    wallet = PublicWallet(modulus, e)
    chain = _Chain()
    assert wallet.get_status(chain) == WalletStatus(3.0, 1)
    assert chain.asked == [wallet.address()]