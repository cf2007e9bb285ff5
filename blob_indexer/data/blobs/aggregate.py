"""Blob transaction distribution report."""

from __future__ import annotations

from collections import Counter

from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from collections.abc import Iterable

    from blob_indexer.data.blobs.models import BlobTransaction, DistributionKey


class BlobDistribution:
    """Running (blob_count, blob_size) counts; holds no records."""

    def __init__(self) -> None:
        self.counts: Counter[DistributionKey] = Counter()

    def add(self, blob_tx: BlobTransaction) -> None:
        self.counts[blob_tx.blob_count, blob_tx.blob_size] += 1

    def table(self) -> dict[DistributionKey, int]:
        """Snapshot of the counts so far."""
        return dict(self.counts)


def aggregate(blob_txs: Iterable[BlobTransaction]) -> dict[DistributionKey, int]:
    """Count transactions per (blob_count, blob_size) pair.

    Consumes the iterable once and returns a snapshot.

    Example:
        ```python
        table = aggregate(blob_txs)
        # {(2, 131072): 5, (6, 131072): 1}
        ```
    """
    distribution = BlobDistribution()
    for blob_tx in blob_txs:
        distribution.add(blob_tx)
    return distribution.table()


def _sort_key(item: tuple[DistributionKey, int]) -> tuple[int, int]:
    (blob_count, blob_size), _ = item
    return blob_count, -1 if blob_size is None else blob_size


def format_distribution(table: dict[DistributionKey, int]) -> list[str]:
    """Render the distribution as report lines, sorted by key."""
    lines = ["Distribution of BlobTransactions:"]
    for (blob_count, blob_size), count in sorted(table.items(), key=_sort_key):
        size = "unknown" if blob_size is None else str(blob_size)
        lines.append(f"{blob_count} blobs of size {size}: {count}")
    return lines


__all__ = ["BlobDistribution", "aggregate", "format_distribution"]
