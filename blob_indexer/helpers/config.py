"""Configuration management and environment variable utilities."""

import os

from dotenv import load_dotenv

from blob_indexer.data.blobs.models import DecodeScheme
from blob_indexer.helpers.constants import BLOB_TX_TYPE_DEFAULT, DEFAULT_CHAIN_NAME


# Load environment variables from .env file
load_dotenv()


def get_required_env(key: str) -> str:
    """Get a required environment variable.

    Args:
        key: Environment variable name

    Returns:
        Environment variable value

    Raises:
        ValueError: If the environment variable is not set

    Example:
        ```python
        from blob_indexer.helpers.config import get_required_env

        rpc_url = get_required_env("ETH_RPC_URL")
        ```
    """
    value = os.getenv(key)
    if not value:
        msg = f"{key} environment variable is not set"
        raise ValueError(msg)
    return value


def get_optional_env(key: str, default: str | None = None) -> str | None:
    """Get an optional environment variable with a default value.

    Args:
        key: Environment variable name
        default: Default value if not set

    Returns:
        Environment variable value or default
    """
    return os.getenv(key, default)


def get_eth_rpc_url(rpc_url: str | None = None) -> str:
    """Get Ethereum RPC URL from parameter or environment.

    Args:
        rpc_url: Optional RPC URL to use directly

    Returns:
        Ethereum RPC URL

    Raises:
        ValueError: If RPC URL is not provided and ETH_RPC_URL env var is not set
    """
    if rpc_url:
        return rpc_url

    env_rpc_url = os.getenv("ETH_RPC_URL")
    if not env_rpc_url:
        msg = "ETH_RPC_URL must be provided or set in environment variables"
        raise ValueError(msg)

    return env_rpc_url


def get_database_url(database_url: str | None = None) -> str:
    """Get the key-value store database URL.

    Resolution order: explicit argument, DATABASE_URL, then a PostgreSQL URL
    assembled from the POSTGRE_* variables.

    Args:
        database_url: Optional SQLAlchemy URL to use directly

    Returns:
        SQLAlchemy async database URL

    Raises:
        ValueError: If no URL is given and the POSTGRE_* variables are incomplete

    Example:
        ```python
        from blob_indexer.helpers.config import get_database_url

        url = get_database_url("sqlite+aiosqlite:///blobs.db")
        ```
    """
    if database_url:
        return database_url

    env_url = os.getenv("DATABASE_URL")
    if env_url:
        return env_url

    parts = {}
    for key in ("POSTGRE_HOST", "POSTGRE_USER", "POSTGRE_PASSWORD", "POSTGRE_DB"):
        value = os.getenv(key)
        if not value:
            msg = f"DATABASE_URL or {key} must be set"
            raise ValueError(msg)
        parts[key] = value

    postgre_port = os.getenv("POSTGRE_PORT", "5432")

    # psycopg (version 3) is the async PostgreSQL driver
    return (
        "postgresql+psycopg://"
        f"{parts['POSTGRE_USER']}:{parts['POSTGRE_PASSWORD']}"
        f"@{parts['POSTGRE_HOST']}:{postgre_port}"
        f"/{parts['POSTGRE_DB']}"
    )


def get_chain_name(chain: str | None = None) -> str:
    """Get the chain tag used in persisted keys.

    Args:
        chain: Optional chain tag to use directly

    Returns:
        Chain tag, CHAIN_NAME from the environment, or "mainnet"
    """
    if chain:
        return chain
    return os.getenv("CHAIN_NAME") or DEFAULT_CHAIN_NAME


def get_blob_tx_type(blob_tx_type: int | None = None) -> int:
    """Get the transaction type discriminant that marks blob transactions.

    Args:
        blob_tx_type: Optional discriminant to use directly

    Returns:
        Discriminant from the argument, BLOB_TX_TYPE, or the EIP-4844 default

    Raises:
        ValueError: If BLOB_TX_TYPE is not a non-negative integer
    """
    if blob_tx_type is not None:
        return blob_tx_type

    env_value = os.getenv("BLOB_TX_TYPE")
    if not env_value:
        return BLOB_TX_TYPE_DEFAULT

    try:
        value = int(env_value, 0)
    except ValueError:
        msg = f"BLOB_TX_TYPE must be an integer, got {env_value!r}"
        raise ValueError(msg) from None

    if value < 0:
        msg = f"BLOB_TX_TYPE must be non-negative, got {value}"
        raise ValueError(msg)
    return value


def get_decode_scheme(scheme: str | None = None) -> DecodeScheme:
    """Get the blob decoding scheme.

    There is no default: the caller must name one explicitly, either directly
    or through BLOB_DECODE_SCHEME.

    Args:
        scheme: Optional scheme name ("structured" or "hex_tail")

    Returns:
        Selected DecodeScheme

    Raises:
        ValueError: If no scheme is configured or the name is unknown
    """
    name = scheme or os.getenv("BLOB_DECODE_SCHEME")
    if not name:
        msg = "BLOB_DECODE_SCHEME must be provided or set in environment variables"
        raise ValueError(msg)

    try:
        return DecodeScheme(name.lower())
    except ValueError:
        choices = ", ".join(s.value for s in DecodeScheme)
        msg = f"Unknown decode scheme {name!r} (expected one of: {choices})"
        raise ValueError(msg) from None


__all__ = [
    "get_blob_tx_type",
    "get_chain_name",
    "get_database_url",
    "get_decode_scheme",
    "get_eth_rpc_url",
    "get_optional_env",
    "get_required_env",
]
