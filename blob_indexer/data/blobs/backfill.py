"""Ingest blob transactions for a block range.

Processing flow, strictly sequential:
1. RangeWalker fetches block N (block, then each transaction)
2. extract() classifies and decodes its transactions
3. PersistenceSink upserts each BlobTransaction in block order
4. Each record is counted into the distribution table as it is stored

Hard failures end the run with a report naming the failing block and the
last block fully processed; records already written stay valid.
"""

from __future__ import annotations

from contextlib import aclosing

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field
from rich.console import Console

from blob_indexer.data.blobs.aggregate import BlobDistribution
from blob_indexer.data.blobs.errors import ErrorKind, RangeWalkError, StoreError
from blob_indexer.data.blobs.extract import extract
from blob_indexer.data.blobs.models import DistributionKey, IngestStats
from blob_indexer.data.blobs.reader import ChainReader
from blob_indexer.data.blobs.sink import PersistenceSink
from blob_indexer.data.blobs.walker import RangeWalker
from blob_indexer.helpers.constants import DEFAULT_MAX_ATTEMPTS
from blob_indexer.helpers.logging import get_logger
from blob_indexer.helpers.progress import track_progress


if TYPE_CHECKING:
    import asyncio

    from blob_indexer.data.blobs.db import KeyValueStore
    from blob_indexer.data.blobs.models import BlobPolicy
    from blob_indexer.helpers.rpc import NodeClient


logger = get_logger(__name__)


class BackfillReport(BaseModel):
    """Outcome of one backfill run."""

    start: int
    end: int
    last_block: int | None = None
    stats: IngestStats = Field(default_factory=IngestStats)
    distribution: dict[DistributionKey, int] = Field(default_factory=dict)
    error: ErrorKind | None = None
    error_message: str | None = None
    failed_block: int | None = None
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        """True when every block in the range was processed."""
        return self.error is None and not self.cancelled


class BlobBackfill:
    """Walk a block range and persist and aggregate its blob transactions."""

    def __init__(
        self,
        node: NodeClient,
        store: KeyValueStore,
        policy: BlobPolicy,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_base_delay: float = 1.0,
        stop_event: asyncio.Event | None = None,
        console: Console | None = None,
        show_progress: bool = True,
    ) -> None:
        """Initialize backfill.

        Args:
            node: Node client capability
            store: Key-value store, opened once for the run
            policy: Blob discriminant, decode scheme and chain tag
            max_attempts: Fetch attempts per block (1 disables retries)
            retry_base_delay: Initial backoff delay between attempts
            stop_event: Set to stop the walk before the next block
            console: Rich console for the progress display
            show_progress: Whether to render the progress bar
        """
        self.node = node
        self.store = store
        self.policy = policy
        self.max_attempts = max_attempts
        self.retry_base_delay = retry_base_delay
        self.stop_event = stop_event
        self.console = console or Console(stderr=True)
        self.show_progress = show_progress

    async def run(self, start: int, end: int) -> BackfillReport:
        """Run the backfill for blocks start..end inclusive.

        Returns:
            BackfillReport; hard failures are recorded in it, not raised
        """
        stats = IngestStats()
        report = BackfillReport(start=start, end=end, stats=stats)
        reader = ChainReader(self.node, stats)
        walker = RangeWalker(
            reader,
            max_attempts=self.max_attempts,
            base_delay=self.retry_base_delay,
            stop_event=self.stop_event,
        )
        sink = PersistenceSink(self.store, stats)
        distribution = BlobDistribution()
        current_block: int | None = None

        logger.info(
            "Ingesting blocks %d..%d (chain=%s, blob type=%d, scheme=%s)",
            start,
            end,
            self.policy.chain,
            self.policy.blob_tx_type,
            self.policy.decode_scheme,
        )

        total = max(end - start + 1, 0)
        try:
            async with self.store:
                with track_progress(
                    "Ingesting blocks",
                    total,
                    self.console,
                    disable=not self.show_progress,
                ) as (progress, task_id):
                    async with aclosing(walker.walk(start, end)) as blocks:
                        async for block in blocks:
                            current_block = block.number
                            for blob_tx in extract(block, self.policy, stats):
                                await sink.upsert(blob_tx)
                                distribution.add(blob_tx)
                            progress.update(
                                task_id,
                                advance=1,
                                description=(
                                    f"Block {block.number:,} "
                                    f"[green]{stats.blob_transactions:,} blob txs[/green]"
                                ),
                            )
        except RangeWalkError as e:
            report.error = e.kind
            report.error_message = str(e.cause)
            report.failed_block = e.block_number
        except StoreError as e:
            logger.error("Store failure at block %s: %s", current_block, e)
            report.error = e.kind
            report.error_message = str(e)
            report.failed_block = current_block

        report.last_block = walker.last_block
        report.cancelled = walker.cancelled
        report.distribution = distribution.table()

        logger.info(
            "Finished: %d blocks, %d transactions, %d blob txs, %d persisted, "
            "%d missing txs, %d decode failures, %d missing fields",
            stats.blocks,
            stats.transactions,
            stats.blob_transactions,
            stats.persisted,
            stats.missing_transactions,
            stats.decode_failures,
            stats.missing_fields,
        )
        return report


__all__ = ["BackfillReport", "BlobBackfill"]
