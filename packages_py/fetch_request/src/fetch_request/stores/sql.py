"""
SQL cache store backed by a SQLAlchemy async engine.

Each operation runs in its own transaction, which makes read-check-delete
and replace sequences atomic per key.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Optional

from sqlalchemy import Column, Float, MetaData, String, Table, Text, delete, insert, select
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from ..types import CacheStore
from ..utils import calculate_expires_at, is_expired, now_ms, serialize_response

logger = logging.getLogger(__name__)

DEFAULT_TABLE_NAME = "fetch_request_cache"
DEFAULT_KEY_PREFIX = "fetch-request:"


def _build_table(table_name: str) -> Table:
    return Table(
        table_name,
        MetaData(),
        Column("key", String(512), primary_key=True),
        Column("value", Text, nullable=False),
        Column("expires_at", Float, nullable=False, index=True),
    )


class SqlCacheStore(CacheStore):
    """
    Transactional cache store on any SQLAlchemy async engine.

    Usage:
        engine = create_async_engine("sqlite+aiosqlite:///cache.db")
        store = SqlCacheStore(engine)
        await store.set("users", response, ttl_ms=60_000)
    """

    def __init__(
        self,
        engine: AsyncEngine,
        table_name: str = DEFAULT_TABLE_NAME,
        key_prefix: str = DEFAULT_KEY_PREFIX,
    ) -> None:
        self._engine = engine
        self._table = _build_table(table_name)
        self._key_prefix = key_prefix
        self._ready = False

    @property
    def table(self) -> Table:
        return self._table

    def _get_key(self, key: str) -> str:
        return f"{self._key_prefix}{key}"

    def _owned(self):
        """Filter matching only rows under this store's prefix."""
        return self._table.c.key.startswith(self._key_prefix, autoescape=True)

    async def _ensure_table(self, conn: AsyncConnection) -> None:
        if not self._ready:
            await conn.run_sync(self._table.metadata.create_all)
            self._ready = True

    @staticmethod
    def _parse_record(raw: Any) -> Optional[dict]:
        """Parse a stored value, returning None when it is malformed."""
        try:
            record = json.loads(raw)
        except (TypeError, ValueError):
            return None
        if not isinstance(record, dict) or "value" not in record:
            return None
        return record

    async def _read(self, key: str) -> Optional[Any]:
        full_key = self._get_key(key)
        async with self._engine.begin() as conn:
            await self._ensure_table(conn)
            row = (
                await conn.execute(
                    select(self._table.c.value, self._table.c.expires_at).where(
                        self._table.c.key == full_key
                    )
                )
            ).first()
            if row is None:
                return None

            record = self._parse_record(row.value)
            if record is None:
                logger.warning(f"SqlCacheStore: dropping malformed record key={full_key}")
                await conn.execute(delete(self._table).where(self._table.c.key == full_key))
                return None

            if is_expired(row.expires_at):
                await conn.execute(delete(self._table).where(self._table.c.key == full_key))
                return None

            return record

    async def get(self, key: str) -> Optional[Any]:
        """Get a cached value."""
        record = await self._read(key)
        return record["value"] if record is not None else None

    async def set(self, key: str, value: Any, ttl_ms: Optional[float] = None) -> None:
        """Store a value, replacing any existing row for the key."""
        full_key = self._get_key(key)
        payload = json.dumps({"value": serialize_response(value)})
        async with self._engine.begin() as conn:
            await self._ensure_table(conn)
            await conn.execute(delete(self._table).where(self._table.c.key == full_key))
            await conn.execute(
                insert(self._table).values(
                    key=full_key,
                    value=payload,
                    expires_at=calculate_expires_at(ttl_ms),
                )
            )

    async def delete(self, key: str) -> None:
        """Delete a cached value."""
        async with self._engine.begin() as conn:
            await self._ensure_table(conn)
            await conn.execute(
                delete(self._table).where(self._table.c.key == self._get_key(key))
            )

    async def clear(self) -> None:
        """Delete every row under this store's prefix."""
        async with self._engine.begin() as conn:
            await self._ensure_table(conn)
            await conn.execute(delete(self._table).where(self._owned()))

    async def has(self, key: str) -> bool:
        """Check if a live value exists."""
        return (await self._read(key)) is not None

    async def cleanup(self) -> None:
        """Delete expired and malformed rows under this store's prefix."""
        async with self._engine.begin() as conn:
            await self._ensure_table(conn)
            expired = await conn.execute(
                delete(self._table).where(self._owned(), self._table.c.expires_at < now_ms())
            )

            rows = await conn.execute(
                select(self._table.c.key, self._table.c.value).where(self._owned())
            )
            malformed = [row.key for row in rows if self._parse_record(row.value) is None]
            if malformed:
                await conn.execute(
                    delete(self._table).where(self._table.c.key.in_(malformed))
                )
            logger.debug(
                f"SqlCacheStore: cleaned up {expired.rowcount} expired "
                f"and {len(malformed)} malformed rows"
            )

    async def close(self) -> None:
        """Dispose of the engine's connection pool."""
        await self._engine.dispose()


def create_sql_cache_store(
    engine: AsyncEngine,
    table_name: str = DEFAULT_TABLE_NAME,
    key_prefix: str = DEFAULT_KEY_PREFIX,
) -> SqlCacheStore:
    """Create a SQL cache store."""
    return SqlCacheStore(engine, table_name=table_name, key_prefix=key_prefix)
