"""Key-value store backed by a single SQLAlchemy table."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import LargeBinary, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Mapped, mapped_column

from blob_indexer.data.blobs.errors import StoreError
from blob_indexer.helpers.constants import KV_TABLE_NAME
from blob_indexer.helpers.db import (
    Base,
    create_engine,
    create_session_factory,
    create_tables,
    upsert_values,
)
from blob_indexer.helpers.logging import get_logger


if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker


logger = get_logger(__name__)


class BlobKV(Base):
    """Opaque key/value rows."""

    __tablename__ = KV_TABLE_NAME

    key: Mapped[bytes] = mapped_column(LargeBinary, primary_key=True)
    value: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)


class KeyValueStore:
    """Byte-keyed store with create-if-missing open and last-write-wins put.

    Each put commits in its own transaction: a failed or interrupted write
    never touches keys written before it.

    Example:
        ```python
        async with KeyValueStore("sqlite+aiosqlite:///blobs.db") as store:
            await store.put(b"mainnet:0xabc", b'{"blob_count": 2}')
            value = await store.get(b"mainnet:0xabc")
        ```
    """

    def __init__(self, database_url: str) -> None:
        self.database_url = database_url
        self._engine: AsyncEngine | None = None
        self._sessions: async_sessionmaker[AsyncSession] | None = None

    async def open(self) -> None:
        """Connect and create the table if it doesn't exist.

        Raises:
            StoreError: If the URL is invalid or unsupported, or the database
                cannot be reached
        """
        if self._engine is not None:
            return
        try:
            engine = create_engine(self.database_url)
        except (SQLAlchemyError, ImportError, ValueError) as e:
            msg = f"Invalid key-value store URL: {e}"
            raise StoreError(msg) from e
        try:
            await create_tables(engine)
        except SQLAlchemyError as e:
            await engine.dispose()
            msg = f"Cannot open key-value store: {e}"
            raise StoreError(msg) from e
        self._engine = engine
        self._sessions = create_session_factory(engine)
        logger.debug("Opened key-value store %s", engine.url.render_as_string())

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
        self._sessions = None

    async def __aenter__(self) -> "KeyValueStore":
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    def _session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._sessions is None:
            msg = "Key-value store is not open"
            raise StoreError(msg)
        return self._sessions

    async def put(self, key: bytes, value: bytes) -> None:
        """Write value under key, replacing any previous value.

        Raises:
            StoreError: On any database failure
        """
        async with self._session_factory()() as session:
            try:
                await upsert_values(session, BlobKV, [{"key": key, "value": value}])
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                msg = f"Failed to write key {key!r}: {e}"
                raise StoreError(msg) from e

    async def get(self, key: bytes) -> bytes | None:
        """Read the value stored under key, or None."""
        async with self._session_factory()() as session:
            try:
                result = await session.execute(
                    select(BlobKV.value).where(BlobKV.key == key)
                )
            except SQLAlchemyError as e:
                msg = f"Failed to read key {key!r}: {e}"
                raise StoreError(msg) from e
            return result.scalar_one_or_none()

    async def items(self, prefix: bytes = b"") -> list[tuple[bytes, bytes]]:
        """Return (key, value) pairs in key order, optionally filtered by prefix."""
        async with self._session_factory()() as session:
            try:
                result = await session.execute(
                    select(BlobKV.key, BlobKV.value).order_by(BlobKV.key)
                )
            except SQLAlchemyError as e:
                msg = f"Failed to scan key-value store: {e}"
                raise StoreError(msg) from e
            return [
                (row.key, row.value)
                for row in result
                if row.key.startswith(prefix)
            ]

    async def keys(self, prefix: bytes = b"") -> list[bytes]:
        return [key for key, _ in await self.items(prefix)]


__all__ = ["BlobKV", "KeyValueStore"]
