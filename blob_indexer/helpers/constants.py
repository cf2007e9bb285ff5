"""Common configuration constants used across the application."""

# Blob classification
BLOB_TX_TYPE_DEFAULT = 3
"""EIP-4844 transaction type carrying blob payloads"""

DEFAULT_CHAIN_NAME = "mainnet"
"""Chain tag used to qualify persisted keys"""

WORD_SIZE = 32
"""Width of one big-endian ABI word in bytes"""

MAX_U64 = 2**64 - 1
"""Largest value accepted for blob counts and sizes"""

HEX_PREFIX_LENGTH = 2
"""Length of the '0x' prefix stripped by the hex-tail decoder"""

# HTTP and Network Constants
DEFAULT_TIMEOUT = 30.0
"""Default HTTP request timeout in seconds"""

# Retry Configuration
DEFAULT_MAX_ATTEMPTS = 1
"""Fetch attempts per block (1 means no retry)"""

RETRY_BASE_DELAY = 1.0
"""Base delay for exponential backoff in seconds"""

RETRY_MAX_DELAY = 60.0
"""Maximum delay between retries in seconds"""

# Storage
KV_TABLE_NAME = "blob_kv"
"""Table backing the key-value store"""

KEY_SEPARATOR = ":"
"""Separator between chain tag and transaction hash in store keys"""


__all__ = [
    "BLOB_TX_TYPE_DEFAULT",
    "DEFAULT_CHAIN_NAME",
    "DEFAULT_MAX_ATTEMPTS",
    "DEFAULT_TIMEOUT",
    "HEX_PREFIX_LENGTH",
    "KEY_SEPARATOR",
    "KV_TABLE_NAME",
    "MAX_U64",
    "RETRY_BASE_DELAY",
    "RETRY_MAX_DELAY",
    "WORD_SIZE",
]
