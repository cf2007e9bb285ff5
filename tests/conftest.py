"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio

from blob_indexer.data.blobs.db import KeyValueStore
from blob_indexer.data.blobs.models import BlobPolicy, DecodeScheme

from tests.fakes import FakeNodeClient


@pytest.fixture
def node() -> FakeNodeClient:
    """Empty in-memory node client."""
    return FakeNodeClient()


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    """SQLite file URL private to the test."""
    return f"sqlite+aiosqlite:///{tmp_path / 'blobs.db'}"


@pytest.fixture
def store(database_url: str) -> KeyValueStore:
    """Unopened key-value store; the code under test opens it."""
    return KeyValueStore(database_url)


@pytest_asyncio.fixture
async def open_store(database_url: str) -> AsyncGenerator[KeyValueStore]:
    """Key-value store opened for direct reads and writes.

    Yields:
        KeyValueStore: Open store, closed after the test
    """
    kv = KeyValueStore(database_url)
    await kv.open()
    yield kv
    await kv.close()


@pytest.fixture
def structured_policy() -> BlobPolicy:
    return BlobPolicy(chain="mainnet", decode_scheme=DecodeScheme.STRUCTURED)


@pytest.fixture
def hex_tail_policy() -> BlobPolicy:
    return BlobPolicy(chain="mainnet", decode_scheme=DecodeScheme.HEX_TAIL)
