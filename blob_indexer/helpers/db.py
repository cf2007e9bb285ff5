"""Database connection helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

from sqlalchemy import inspect
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base


if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncEngine


Base = declarative_base()

DBModelType = TypeVar("DBModelType")

DIALECT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def create_engine(database_url: str, *, echo: bool = False) -> AsyncEngine:
    """Create an async engine for a SQLAlchemy URL.

    Args:
        database_url: URL such as "postgresql+psycopg://..." or
            "sqlite+aiosqlite:///blobs.db"
        echo: Whether to log SQL statements

    Returns:
        AsyncEngine

    Raises:
        ValueError: If the dialect has no native upsert support here
    """
    engine = create_async_engine(database_url, echo=echo)
    if engine.dialect.name not in DIALECT_INSERTS:
        msg = f"Unsupported database dialect: {engine.dialect.name}"
        raise ValueError(msg)
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to an engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Create all tables registered on Base if they don't exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def upsert_values(
    session: AsyncSession,
    db_model_class: type[DBModelType],
    values: Sequence[dict[str, Any]],
) -> None:
    """Upsert rows using INSERT ... ON CONFLICT DO UPDATE.

    Every non primary key column is overwritten, so repeating the same write
    leaves the row unchanged. The caller owns the transaction.

    Args:
        session: Open database session
        db_model_class: The SQLAlchemy model class (e.g., BlobKV)
        values: Column dictionaries to upsert

    Raises:
        ValueError: If the model class cannot be inspected

    Examples:
        await upsert_values(
            session,
            BlobKV,
            [{"key": b"mainnet:0xabc", "value": b"{...}"}],
        )
    """
    if not values:
        return

    mapper = inspect(db_model_class)
    if not mapper:
        msg = f"Cannot inspect {db_model_class}"
        raise ValueError(msg)
    pk_columns = [col.name for col in mapper.primary_key]

    dialect_name = session.get_bind().dialect.name
    insert = DIALECT_INSERTS[dialect_name]

    stmt = insert(db_model_class).values(list(values))

    # Build the update dict (all columns except primary keys)
    update_dict = {
        col: stmt.excluded[col] for col in values[0] if col not in pk_columns
    }

    stmt = stmt.on_conflict_do_update(
        index_elements=pk_columns,
        set_=update_dict,
    )
    await session.execute(stmt)


__all__ = [
    "Base",
    "create_engine",
    "create_session_factory",
    "create_tables",
    "upsert_values",
]
