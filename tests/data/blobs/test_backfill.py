"""End-to-end tests for the blob backfill run."""

import asyncio

import pytest

from blob_indexer.data.blobs.backfill import BlobBackfill
from blob_indexer.data.blobs.db import KeyValueStore
from blob_indexer.data.blobs.errors import ErrorKind, StoreError
from blob_indexer.data.blobs.models import BlobPolicy
from blob_indexer.data.blobs.sink import decode_record

from tests.fakes import FakeNodeClient, structured_input, tx_hash, tx_payload


def three_block_range(node: FakeNodeClient, start: int = 20) -> None:
    """Block N: 2 blob txs, N+1: none, N+2: 1 malformed blob tx."""
    node.add_block(
        start,
        [
            tx_payload(tx_hash(start, 0), input_hex=structured_input(2, 131072)),
            tx_payload(tx_hash(start, 1), tx_type=2),
            tx_payload(tx_hash(start, 2), input_hex=structured_input(6, 131072)),
        ],
    )
    node.add_block(start + 1, [tx_payload(tx_hash(start + 1, 0), tx_type=0)])
    node.add_block(
        start + 2,
        [tx_payload(tx_hash(start + 2, 0), input_hex="0x" + "01" * 10)],
    )


class FailingStore(KeyValueStore):
    """Store whose writes start failing after a number of successful puts."""

    def __init__(self, database_url: str, fail_after: int) -> None:
        super().__init__(database_url)
        self.fail_after = fail_after
        self.puts = 0

    async def put(self, key: bytes, value: bytes) -> None:
        if self.puts >= self.fail_after:
            msg = "disk full"
            raise StoreError(msg)
        self.puts += 1
        await super().put(key, value)


def make_backfill(
    node: FakeNodeClient,
    store: KeyValueStore,
    policy: BlobPolicy,
    **kwargs: object,
) -> BlobBackfill:
    return BlobBackfill(node, store, policy, show_progress=False, **kwargs)  # type: ignore[arg-type]


class TestBlobBackfill:
    """Tests for BlobBackfill.run."""

    @pytest.mark.asyncio
    async def test_three_block_scenario(
        self,
        node: FakeNodeClient,
        store: KeyValueStore,
        structured_policy: BlobPolicy,
    ) -> None:
        three_block_range(node)

        report = await make_backfill(node, store, structured_policy).run(20, 22)

        assert report.ok
        assert report.last_block == 22
        assert sum(report.distribution.values()) == 2
        assert report.distribution == {(2, 131072): 1, (6, 131072): 1}
        assert report.stats.decode_failures == 1
        assert report.stats.blocks == 3
        assert report.stats.persisted == 2

    @pytest.mark.asyncio
    async def test_records_are_persisted(
        self,
        node: FakeNodeClient,
        store: KeyValueStore,
        database_url: str,
        structured_policy: BlobPolicy,
    ) -> None:
        three_block_range(node)

        await make_backfill(node, store, structured_policy).run(20, 22)

        async with KeyValueStore(database_url) as kv:
            items = await kv.items()

        assert [key for key, _ in items] == [
            f"mainnet:{tx_hash(20, 0)}".encode(),
            f"mainnet:{tx_hash(20, 2)}".encode(),
        ]
        record = decode_record(items[0][1])
        assert record.blob_count == 2
        assert record.timestamp == 1_710_338_135 + 12 * 20

    @pytest.mark.asyncio
    async def test_reingestion_is_idempotent(
        self,
        node: FakeNodeClient,
        store: KeyValueStore,
        database_url: str,
        structured_policy: BlobPolicy,
    ) -> None:
        """Test running the same range twice leaves identical keys and values."""
        three_block_range(node)
        backfill = make_backfill(node, store, structured_policy)

        await backfill.run(20, 22)
        async with KeyValueStore(database_url) as kv:
            first = await kv.items()

        await backfill.run(20, 22)
        async with KeyValueStore(database_url) as kv:
            second = await kv.items()

        assert second == first
        assert len(second) == 2

    @pytest.mark.asyncio
    async def test_overlapping_ranges(
        self,
        node: FakeNodeClient,
        store: KeyValueStore,
        database_url: str,
        structured_policy: BlobPolicy,
    ) -> None:
        three_block_range(node)
        backfill = make_backfill(node, store, structured_policy)

        await backfill.run(20, 21)
        await backfill.run(20, 22)

        async with KeyValueStore(database_url) as kv:
            assert len(await kv.keys()) == 2

    @pytest.mark.asyncio
    async def test_missing_block_reports_resume_point(
        self,
        node: FakeNodeClient,
        store: KeyValueStore,
        database_url: str,
        structured_policy: BlobPolicy,
    ) -> None:
        three_block_range(node)
        del node.blocks[21]

        report = await make_backfill(node, store, structured_policy).run(20, 22)

        assert not report.ok
        assert report.error is ErrorKind.BLOCK_NOT_FOUND
        assert report.failed_block == 21
        assert report.last_block == 20
        # Progress made before the failure stays queryable
        async with KeyValueStore(database_url) as kv:
            assert len(await kv.keys()) == 2
        assert report.distribution == {(2, 131072): 1, (6, 131072): 1}

    @pytest.mark.asyncio
    async def test_transport_error_with_retry(
        self,
        node: FakeNodeClient,
        store: KeyValueStore,
        structured_policy: BlobPolicy,
    ) -> None:
        three_block_range(node)
        node.transport_failures[21] = 1

        report = await make_backfill(
            node, store, structured_policy, max_attempts=2, retry_base_delay=0.001
        ).run(20, 22)

        assert report.ok
        assert node.block_calls == [20, 21, 21, 22]

    @pytest.mark.asyncio
    async def test_store_failure_is_fatal(
        self,
        node: FakeNodeClient,
        database_url: str,
        structured_policy: BlobPolicy,
    ) -> None:
        three_block_range(node)
        store = FailingStore(database_url, fail_after=1)

        report = await make_backfill(node, store, structured_policy).run(20, 22)

        assert report.error is ErrorKind.STORE
        assert report.failed_block == 20
        assert report.last_block is None
        assert node.block_calls == [20]
        async with KeyValueStore(database_url) as kv:
            assert await kv.keys() == [f"mainnet:{tx_hash(20, 0)}".encode()]

    @pytest.mark.asyncio
    async def test_empty_range(
        self,
        node: FakeNodeClient,
        store: KeyValueStore,
        structured_policy: BlobPolicy,
    ) -> None:
        report = await make_backfill(node, store, structured_policy).run(5, 4)

        assert report.ok
        assert report.last_block is None
        assert report.distribution == {}

    @pytest.mark.asyncio
    async def test_cancelled_before_start(
        self,
        node: FakeNodeClient,
        store: KeyValueStore,
        structured_policy: BlobPolicy,
    ) -> None:
        three_block_range(node)
        stop_event = asyncio.Event()
        stop_event.set()

        report = await make_backfill(
            node, store, structured_policy, stop_event=stop_event
        ).run(20, 22)

        assert report.cancelled
        assert not report.ok
        assert report.error is None
        assert node.block_calls == []

    @pytest.mark.asyncio
    async def test_hex_tail_scheme(
        self,
        node: FakeNodeClient,
        store: KeyValueStore,
        hex_tail_policy: BlobPolicy,
    ) -> None:
        node.add_block(1, [tx_payload(tx_hash(1, 0), input_hex="0x03")])

        report = await make_backfill(node, store, hex_tail_policy).run(1, 1)

        assert report.distribution == {(3, None): 1}

    @pytest.mark.asyncio
    async def test_invalid_store_url_is_reported(
        self,
        node: FakeNodeClient,
        structured_policy: BlobPolicy,
    ) -> None:
        """Test a bad store URL ends the run with a store error, not a crash."""
        node.add_empty_range(1, 2)
        store = KeyValueStore("not a database url")

        report = await make_backfill(node, store, structured_policy).run(1, 2)

        assert report.error is ErrorKind.STORE
        assert report.failed_block is None
        assert report.last_block is None
        assert node.block_calls == []
