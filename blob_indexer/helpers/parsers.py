"""Parsing utilities for JSON-RPC quantity and data fields."""


def parse_hex_int(hex_value: str | None, default: int = 0) -> int:
    """Parse hex string to integer.

    Args:
        hex_value: Hex-encoded string or None
        default: Default value if hex_value is None

    Returns:
        int: Parsed integer value

    Example:
        >>> parse_hex_int("0xff")
        255
        >>> parse_hex_int(None, 0)
        0
    """
    if hex_value is None:
        return default
    return int(hex_value, 16)


def parse_optional_hex_int(hex_value: str | None) -> int | None:
    """Parse hex string to integer, keeping None as None.

    Example:
        >>> parse_optional_hex_int("0x10")
        16
        >>> parse_optional_hex_int(None) is None
        True
    """
    if hex_value is None:
        return None
    return int(hex_value, 16)


def parse_hex_bytes(hex_value: str | None) -> bytes:
    """Parse a 0x-prefixed DATA field to raw bytes.

    Args:
        hex_value: Hex-encoded data string or None

    Returns:
        bytes: Decoded bytes, empty for None or "0x"

    Raises:
        ValueError: If the string is not valid hex

    Example:
        >>> parse_hex_bytes("0xdeadbeef")
        b'\\xde\\xad\\xbe\\xef'
    """
    if not hex_value:
        return b""
    digits = hex_value[2:] if hex_value[:2] in ("0x", "0X") else hex_value
    return bytes.fromhex(digits)


__all__ = [
    "parse_hex_bytes",
    "parse_hex_int",
    "parse_optional_hex_int",
]
