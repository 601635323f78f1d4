"""ULID parsing.

Block identifiers are ULIDs: 128 bits rendered as 26 Crockford base32
characters, the high 48 bits being a millisecond timestamp so identifiers sort
by creation time.
"""

from __future__ import annotations

ULID_LENGTH = 26
_ULID_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_DECODE_TABLE = {char: index for index, char in enumerate(_ULID_ALPHABET)}
_MAX_ULID_INT = (1 << 128) - 1


def ulid_str_to_bytes(value: str) -> bytes:
    """Decode a 26-char ULID string (any case) into 16-byte big-endian form."""
    candidate = value.upper()
    if len(candidate) != ULID_LENGTH:
        raise ValueError(f"ULID string must be exactly {ULID_LENGTH} characters")

    number = 0
    for char in candidate:
        if char not in _DECODE_TABLE:
            raise ValueError(f"Invalid ULID character: {char!r}")
        number = (number << 5) | _DECODE_TABLE[char]

    # 26 base32 chars encode 130 bits; only the lower 128 are usable.
    if number > _MAX_ULID_INT:
        raise ValueError("ULID value exceeds 128-bit range")
    return number.to_bytes(16, byteorder="big", signed=False)


def ulid_bytes_to_str(value: bytes) -> str:
    if len(value) != 16:
        raise ValueError("ULID bytes must be exactly 16 bytes")

    number = int.from_bytes(value, byteorder="big", signed=False)
    chars: list[str] = []
    for _ in range(ULID_LENGTH):
        number, remainder = divmod(number, 32)
        chars.append(_ULID_ALPHABET[remainder])
    return "".join(reversed(chars))


def parse_ulid(value: str) -> str:
    """Validate ``value`` and return its canonical upper-case rendering."""
    return ulid_bytes_to_str(ulid_str_to_bytes(value))
