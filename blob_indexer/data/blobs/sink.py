"""Persist classified blob transactions into a key-value store."""

from typing import Protocol

from pydantic import ValidationError

from blob_indexer.data.blobs.errors import StoreError
from blob_indexer.data.blobs.models import BlobTransaction, IngestStats
from blob_indexer.helpers.constants import KEY_SEPARATOR
from blob_indexer.helpers.logging import get_logger


logger = get_logger(__name__)


class KVStore(Protocol):
    """Byte-keyed put/get capability; put raises StoreError on failure."""

    async def put(self, key: bytes, value: bytes) -> None: ...

    async def get(self, key: bytes) -> bytes | None: ...


def make_key(chain: str, tx_hash: str) -> bytes:
    """Build the chain-qualified store key.

    Example:
        >>> make_key("mainnet", "0xabc")
        b'mainnet:0xabc'
    """
    return f"{chain}{KEY_SEPARATOR}{tx_hash}".encode()


def encode_record(blob_tx: BlobTransaction) -> bytes:
    """Serialize to field-named JSON; equal records give equal bytes."""
    return blob_tx.model_dump_json().encode()


def decode_record(value: bytes) -> BlobTransaction:
    return BlobTransaction.model_validate_json(value)


class PersistenceSink:
    """Upsert BlobTransaction records keyed by "<chain>:<tx_hash>".

    Writes are blind overwrites, so ingesting the same range twice leaves
    the store byte-for-byte unchanged.
    """

    def __init__(self, store: KVStore, stats: IngestStats | None = None) -> None:
        self.store = store
        self.stats = stats if stats is not None else IngestStats()

    async def upsert(self, blob_tx: BlobTransaction) -> None:
        """Write one record.

        Raises:
            StoreError: If the underlying write fails
        """
        key = make_key(blob_tx.chain, blob_tx.tx_hash)
        await self.store.put(key, encode_record(blob_tx))
        self.stats.persisted += 1
        logger.debug("Stored %s", key.decode())

    async def get(self, chain: str, tx_hash: str) -> BlobTransaction | None:
        """Read a record back.

        Raises:
            StoreError: If the stored value is not a valid record
        """
        value = await self.store.get(make_key(chain, tx_hash))
        if value is None:
            return None
        try:
            return decode_record(value)
        except ValidationError as e:
            msg = f"Corrupt record for {chain}:{tx_hash}: {e}"
            raise StoreError(msg) from e


__all__ = [
    "KVStore",
    "PersistenceSink",
    "decode_record",
    "encode_record",
    "make_key",
]
