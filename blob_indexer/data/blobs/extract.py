"""Classify a block's transactions and extract blob metadata."""

from __future__ import annotations

from typing import TYPE_CHECKING

from blob_indexer.data.blobs.classifier import is_blob_transaction
from blob_indexer.data.blobs.decoder import decode_transaction
from blob_indexer.data.blobs.errors import DecodeError, MissingFieldError
from blob_indexer.data.blobs.models import BlobTransaction, IngestStats
from blob_indexer.helpers.logging import get_logger


if TYPE_CHECKING:
    from blob_indexer.data.blobs.models import BlobPolicy, Block, Transaction


logger = get_logger(__name__)


def build_blob_transaction(
    block: Block, tx: Transaction, policy: BlobPolicy
) -> BlobTransaction:
    """Build the record for a transaction already classified as blob.

    Raises:
        MissingFieldError: If the transaction has no recipient
        DecodeError: If the input cannot be decoded under policy.decode_scheme
    """
    # Contract creations are excluded so to_address stays non-nullable at rest
    if tx.to_address is None:
        raise MissingFieldError(tx.hash, "to")

    blob_count, blob_size = decode_transaction(tx, policy.decode_scheme)
    return BlobTransaction(
        chain=policy.chain,
        tx_hash=tx.hash,
        from_address=tx.from_address,
        to_address=tx.to_address,
        value=tx.value,
        gas_used=tx.gas,
        gas_price=tx.gas_price,
        timestamp=block.timestamp,
        blob_count=blob_count,
        blob_size=blob_size,
    )


def extract(
    block: Block, policy: BlobPolicy, stats: IngestStats | None = None
) -> list[BlobTransaction]:
    """Return the block's blob transactions in transaction order.

    Decode failures and missing recipients skip the transaction and are
    counted in stats; they never abort the block.

    Args:
        block: Fetched block
        policy: Discriminant, decode scheme and chain tag
        stats: Run counters to update (optional)

    Returns:
        List of BlobTransaction, possibly empty
    """
    stats = stats if stats is not None else IngestStats()
    blob_txs: list[BlobTransaction] = []

    for tx in block.transactions:
        if not is_blob_transaction(tx, policy.blob_tx_type):
            continue

        try:
            blob_tx = build_blob_transaction(block, tx, policy)
        except MissingFieldError as e:
            stats.missing_fields += 1
            logger.warning("Skipping %s in block %d: %s", tx.hash, block.number, e)
            continue
        except DecodeError as e:
            stats.decode_failures += 1
            logger.warning(
                "Skipping %s in block %d (%s): %s", tx.hash, block.number, e.kind, e
            )
            continue

        stats.blob_transactions += 1
        blob_txs.append(blob_tx)

    return blob_txs


__all__ = ["build_blob_transaction", "extract"]
