"""Sequential, resumable walk over an inclusive block range."""

from __future__ import annotations

from typing import TYPE_CHECKING

from blob_indexer.data.blobs.errors import FetchError, RangeWalkError, TransportError
from blob_indexer.helpers.constants import (
    DEFAULT_MAX_ATTEMPTS,
    RETRY_BASE_DELAY,
    RETRY_MAX_DELAY,
)
from blob_indexer.helpers.http import retry_with_backoff
from blob_indexer.helpers.logging import get_logger


if TYPE_CHECKING:
    import asyncio
    from collections.abc import AsyncIterator

    from blob_indexer.data.blobs.models import Block
    from blob_indexer.data.blobs.reader import ChainReader


logger = get_logger(__name__)


class RangeWalker:
    """Drive a ChainReader across [start, end], one block at a time.

    Block N+1 is requested only after block N has been consumed, so
    last_block always names the newest block the caller finished with. A
    hard fetch failure raises RangeWalkError carrying that number; calling
    walk(error.resume_from, end) picks up where the failed run stopped.

    Example:
        ```python
        walker = RangeWalker(reader)
        async for block in walker.walk(19_426_587, 19_426_600):
            handle(block)
        ```
    """

    def __init__(
        self,
        reader: ChainReader,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay: float = RETRY_BASE_DELAY,
        max_delay: float = RETRY_MAX_DELAY,
        stop_event: asyncio.Event | None = None,
    ) -> None:
        """Initialize walker.

        Args:
            reader: Chain reader used for every block
            max_attempts: Fetch attempts per block; only TransportError is retried
            base_delay: Initial backoff delay in seconds
            max_delay: Backoff cap in seconds
            stop_event: When set, the walk ends before the next fetch
        """
        self.reader = reader
        self.stop_event = stop_event
        self.last_block: int | None = None
        self.cancelled = False
        self._fetch = retry_with_backoff(
            max_attempts,
            base_delay,
            max_delay,
            retry_on=(TransportError,),
        )(reader.fetch_block)

    async def walk(self, start: int, end: int) -> AsyncIterator[Block]:
        """Yield blocks start..end inclusive in ascending order.

        An empty range (start > end) yields nothing.

        Raises:
            RangeWalkError: On the first hard fetch failure
        """
        self.last_block = None
        self.cancelled = False

        if start > end:
            logger.info("Empty range %d..%d, nothing to walk", start, end)
            return

        for block_number in range(start, end + 1):
            if self.stop_event is not None and self.stop_event.is_set():
                self.cancelled = True
                logger.warning(
                    "Walk cancelled before block %d (last processed: %s)",
                    block_number,
                    self.last_block,
                )
                return

            try:
                block = await self._fetch(block_number)
            except FetchError as e:
                logger.error("Failed to fetch block %d (%s): %s", block_number, e.kind, e)
                raise RangeWalkError(block_number, self.last_block, e) from e

            yield block
            # Consumer asked for the next block, so this one is done
            self.last_block = block_number


__all__ = ["RangeWalker"]
