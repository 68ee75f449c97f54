import pytest

from hyperchain.codec import DecodeError, Reader, Writer
from hyperchain.hashing import Hash, Signature
from hyperchain.page import Page
from hyperchain.transaction import Input, Transaction, TransactionHeader
from hyperchain.transfer import Output, Transfer
from hyperchain.variant import decode_variant, encode_variant, is_page, is_transfer

EXPONENT = b"\x01\x00\x01"


def _input(n, amount):
    return Input(Signature(bytes([n]) * 256), EXPONENT, amount)


def _transfer():
    sender = _input(1, 3.0)
    content = Transfer(1, [Output(_input(2, 0.0).address(), 2.0)], 1.0)
    return Transaction(
        TransactionHeader(content, [sender]),
        {sender.address(): Signature(b"\x05" * 256)},
    )


def _page():
    sender = _input(1, 1.0)
    content = Page(2, sender.address(), [Hash.empty()], 10, 1.0)
    return Transaction(TransactionHeader(content, [sender]), {})


def _encode(transaction):
    writer = Writer()
    encode_variant(writer, transaction)
    return writer.getvalue()


def test_kind_checks():
    assert is_transfer(_transfer())
    assert not is_page(_transfer())
    assert is_page(_page())
    assert not is_transfer(_page())


def test_variant_tags():
    assert _encode(_transfer())[:4] == b"\x00\x00\x00\x00"
    assert _encode(_page())[:4] == b"\x01\x00\x00\x00"


@pytest.mark.parametrize("make", [_transfer, _page])
def test_round_trip(make):
    transaction = make()
    reader = Reader(_encode(transaction))
    decoded = decode_variant(reader)
    assert decoded == transaction
    assert reader.remaining() == 0


def test_unknown_variant():
    data = b"\x02\x00\x00\x00" + _encode(_transfer())[4:]
    with pytest.raises(DecodeError):
        decode_variant(Reader(data))