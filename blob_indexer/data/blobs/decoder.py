"""Decode blob count and size from transaction input."""

import string

from blob_indexer.data.blobs.errors import DecodeOverflowError, MalformedInputError
from blob_indexer.data.blobs.models import DecodeScheme, Transaction
from blob_indexer.helpers.constants import HEX_PREFIX_LENGTH, MAX_U64, WORD_SIZE

_HEX_DIGITS = frozenset(string.hexdigits)


def _to_u64(value: int, field: str) -> int:
    if value > MAX_U64:
        msg = f"Integer overflow when casting {field} to u64"
        raise DecodeOverflowError(msg)
    return value


def decode_structured(data: bytes) -> tuple[int, int]:
    """Read two consecutive 32-byte big-endian words as (count, size).

    Args:
        data: Raw transaction input

    Returns:
        Tuple of (blob_count, blob_size)

    Raises:
        MalformedInputError: If the input is shorter than 64 bytes
        DecodeOverflowError: If either word exceeds 2**64 - 1

    Example:
        >>> decode_structured((5).to_bytes(32, "big") + (1024).to_bytes(32, "big"))
        (5, 1024)
    """
    if len(data) < 2 * WORD_SIZE:
        msg = f"Input is {len(data)} bytes, need at least {2 * WORD_SIZE}"
        raise MalformedInputError(msg)

    blob_count = int.from_bytes(data[0:WORD_SIZE], "big")
    blob_size = int.from_bytes(data[WORD_SIZE : 2 * WORD_SIZE], "big")
    return _to_u64(blob_count, "blob count"), _to_u64(blob_size, "blob size")


def decode_hex_tail(data: bytes | str) -> int:
    """Read the hex digits after a 2-character prefix as the blob count.

    Args:
        data: ASCII text such as b"0x05"

    Returns:
        Blob count

    Raises:
        MalformedInputError: If the text is too short, not ASCII, or not hex
        DecodeOverflowError: If the count exceeds 2**64 - 1

    Example:
        >>> decode_hex_tail("0x0a")
        10
    """
    if isinstance(data, bytes):
        try:
            text = data.decode("ascii")
        except UnicodeDecodeError:
            msg = "Input is not ASCII text"
            raise MalformedInputError(msg) from None
    else:
        text = data

    tail = text[HEX_PREFIX_LENGTH:]
    if not tail:
        msg = f"No hex digits after the {HEX_PREFIX_LENGTH}-character prefix"
        raise MalformedInputError(msg)
    if not _HEX_DIGITS.issuperset(tail):
        msg = f"Invalid hex tail {tail[:16]!r}"
        raise MalformedInputError(msg)

    return _to_u64(int(tail, 16), "blob count")


def decode(data: bytes | str, scheme: DecodeScheme) -> tuple[int, int | None]:
    """Decode blob fields with an explicitly chosen scheme.

    Args:
        data: Raw input for STRUCTURED, ASCII hex text for HEX_TAIL
        scheme: Decoding strategy

    Returns:
        Tuple of (blob_count, blob_size); blob_size is None for HEX_TAIL

    Raises:
        DecodeError: On malformed input or overflow
    """
    if scheme is DecodeScheme.STRUCTURED:
        if isinstance(data, str):
            msg = "Structured scheme expects raw bytes, got text"
            raise MalformedInputError(msg)
        return decode_structured(data)
    return decode_hex_tail(data), None


def decode_transaction(tx: Transaction, scheme: DecodeScheme) -> tuple[int, int | None]:
    """Decode blob fields from a transaction's input.

    HEX_TAIL reads the 0x-prefixed hex rendering of the input bytes, which is
    how the input appears on the wire.
    """
    if scheme is DecodeScheme.HEX_TAIL:
        return decode("0x" + tx.input.hex(), scheme)
    return decode(tx.input, scheme)


__all__ = [
    "decode",
    "decode_hex_tail",
    "decode_structured",
    "decode_transaction",
]
