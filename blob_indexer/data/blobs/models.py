"""Pydantic models for blocks, transactions and classified blob transactions."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from blob_indexer.helpers.constants import BLOB_TX_TYPE_DEFAULT, DEFAULT_CHAIN_NAME


class DecodeScheme(StrEnum):
    """Named strategies for reading blob fields from transaction input."""

    STRUCTURED = "structured"
    """Two 32-byte big-endian words: count at [0, 32), size at [32, 64)."""

    HEX_TAIL = "hex_tail"
    """ASCII hex after a 2-character prefix, read as the count; no size."""


class Transaction(BaseModel):
    """Ethereum transaction as returned by eth_getTransactionByHash."""

    hash: str
    from_address: str
    to_address: str | None = None
    value: int = 0
    gas: int = 0
    gas_price: int = 0
    input: bytes = b""
    transaction_type: int | None = None


class Block(BaseModel):
    """Ethereum block with its transactions fetched in full."""

    number: int
    hash: str
    parent_hash: str
    nonce: str | None = None
    logs_bloom: bytes | None = None
    transactions_root: str
    state_root: str
    receipts_root: str
    difficulty: int
    total_difficulty: int
    extra_data: bytes = b""
    size: int | None = None
    gas_limit: int
    gas_used: int
    timestamp: int
    base_fee_per_gas: int | None = None
    transactions: list[Transaction] = Field(default_factory=list)
    uncles: list[str] = Field(default_factory=list)


class BlobTransaction(BaseModel):
    """Classified blob transaction, persisted under "<chain>:<tx_hash>"."""

    model_config = ConfigDict(frozen=True)

    chain: str
    tx_hash: str
    from_address: str
    to_address: str
    value: int
    gas_used: int
    gas_price: int
    timestamp: int
    blob_count: int = Field(ge=0)
    blob_size: int | None = Field(default=None, ge=0)


class BlobPolicy(BaseModel):
    """Classification and decoding policy injected into the extraction stage.

    decode_scheme has no default so every run names its scheme.
    """

    model_config = ConfigDict(frozen=True)

    chain: str = DEFAULT_CHAIN_NAME
    blob_tx_type: int = Field(default=BLOB_TX_TYPE_DEFAULT, ge=0)
    decode_scheme: DecodeScheme


class IngestStats(BaseModel):
    """Per-run counters; every soft failure increments exactly one of them."""

    blocks: int = 0
    transactions: int = 0
    blob_transactions: int = 0
    persisted: int = 0
    missing_transactions: int = 0
    decode_failures: int = 0
    missing_fields: int = 0


DistributionKey = tuple[int, int | None]
"""(blob_count, blob_size) pair; blob_size is None under the hex-tail scheme."""


__all__ = [
    "BlobPolicy",
    "BlobTransaction",
    "Block",
    "DecodeScheme",
    "DistributionKey",
    "IngestStats",
    "Transaction",
]
