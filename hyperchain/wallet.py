"""Wallet status and public key wallets."""

from __future__ import annotations

import abc
import enum
from dataclasses import dataclass
from typing import Any, Optional

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from .codec import Reader, Writer
from .hashing import Hash, Signature, sha256_hash


@dataclass
class WalletStatus:
    """Balance and highest used transaction id of an address."""

    balance: float = 0.0
    max_id: int = 0

    def encode(self, writer: Writer) -> None:
        writer.f32(self.balance)
        writer.u32(self.max_id)

    @classmethod
    def decode(cls, reader: Reader) -> "WalletStatus":
        return cls(balance=reader.f32(), max_id=reader.u32())


class WalletValidationResult(enum.Enum):
    OK = "ok"
    SIGNATURE = "signature"

    def __str__(self) -> str:
        return "Ok" if self is WalletValidationResult.OK else "Signature not valid"


class Wallet(abc.ABC):
    """Anything with a public key and hence an address."""

    @abc.abstractmethod
    def public_key(self) -> Signature:
        """The wallet's public key modulus, little-endian."""

    def address(self) -> Hash:
        return sha256_hash(self.public_key())

    def get_status(self, chain: Any) -> WalletStatus:
        return chain.get_wallet_status(self.address())


class PublicWallet(Wallet):
    """A wallet known only by its public key, able to verify signatures."""

    def __init__(self, public_key: Any, e: Optional[bytes] = None) -> None:
        self._public_key = public_key if isinstance(public_key, Signature) else Signature(public_key)
        if e is not None:
            e = bytes(e)
            if len(e) != 3:
                raise ValueError(f"public exponent must be 3 bytes, got {len(e)}")
        self._e = e

    def public_key(self) -> Signature:
        return self._public_key

    @classmethod
    def from_public_key(cls, public_key: bytes) -> "PublicWallet":
        return cls(Signature(public_key))

    def verify(self, digest: bytes, signature: Any) -> WalletValidationResult:
        """Check a PKCS#1 v1.5 signature made over the raw digest bytes."""
        if self._e is None:
            raise ValueError("wallet has no public exponent to verify with")

        n = int.from_bytes(self._public_key.data(), "little")
        e = int.from_bytes(self._e, "little")
        key = rsa.RSAPublicNumbers(e, n).public_key()
        try:
            recovered = key.recover_data_from_signature(
                bytes(signature), padding.PKCS1v15(), None
            )
        except (InvalidSignature, ValueError):
            return WalletValidationResult.SIGNATURE

        if recovered == bytes(digest):
            return WalletValidationResult.OK
        return WalletValidationResult.SIGNATURE