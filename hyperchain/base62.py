"""Base-62 text encoding of byte strings used for addresses and ids."""

ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"
_INDEX = {char: value for value, char in enumerate(ALPHABET)}


def encode(data: bytes) -> str:
    """Encode bytes; each leading zero byte becomes a leading ``0``."""
    raw = bytes(data)
    stripped = raw.lstrip(b"\0")
    zeros = len(raw) - len(stripped)
    number = int.from_bytes(stripped, "big")
    digits = []
    while number:
        number, remainder = divmod(number, 62)
        digits.append(ALPHABET[remainder])
    return "0" * zeros + "".join(reversed(digits))


def decode(text: str) -> bytes:
    """Decode text produced by :func:`encode`."""
    stripped = text.lstrip("0")
    zeros = len(text) - len(stripped)
    number = 0
    for char in stripped:
        try:
            number = number * 62 + _INDEX[char]
        except KeyError:
            raise ValueError(f"invalid base62 character {char!r}") from None
    body = number.to_bytes((number.bit_length() + 7) // 8, "big") if number else b""
    return b"\0" * zeros + body