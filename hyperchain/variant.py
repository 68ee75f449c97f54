"""Encoding of a transaction of either kind, tagged by its content type."""

from __future__ import annotations

from .codec import DecodeError, Reader, Writer
from .page import Page
from .transaction import Transaction
from .transfer import Transfer

_CONTENT_TYPES: tuple[type, ...] = (Transfer, Page)


def is_transfer(transaction: Transaction) -> bool:
    return isinstance(transaction.header.content, Transfer)


def is_page(transaction: Transaction) -> bool:
    return isinstance(transaction.header.content, Page)


def encode_variant(writer: Writer, transaction: Transaction) -> None:
    """Write the content kind's index followed by the transaction."""
    content = transaction.header.content
    for index, content_type in enumerate(_CONTENT_TYPES):
        if isinstance(content, content_type):
            writer.variant(index)
            transaction.encode(writer)
            return
    raise TypeError(f"unsupported transaction content {type(content).__name__}")


def decode_variant(reader: Reader) -> Transaction:
    index = reader.variant()
    if index >= len(_CONTENT_TYPES):
        raise DecodeError(f"unknown transaction variant {index}")
    return Transaction.decode(reader, _CONTENT_TYPES[index])