"""Blob transaction classification."""

from blob_indexer.data.blobs.models import Transaction
from blob_indexer.helpers.constants import BLOB_TX_TYPE_DEFAULT


def is_blob_transaction(
    tx: Transaction, blob_tx_type: int = BLOB_TX_TYPE_DEFAULT
) -> bool:
    """Return True if the transaction's type equals the blob discriminant.

    A transaction without a type (legacy, pre-EIP-2718) is never a blob
    transaction.
    """
    if tx.transaction_type is None:
        return False
    return tx.transaction_type == blob_tx_type


__all__ = ["is_blob_transaction"]
