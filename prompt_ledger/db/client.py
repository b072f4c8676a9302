"""Storage collaborator contract and its SQLAlchemy implementation."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from functools import lru_cache
from typing import Any, Protocol

import structlog
from sqlalchemy import Connection, Engine, create_engine, event
from sqlalchemy.pool import StaticPool

from prompt_ledger.config import get_settings
from prompt_ledger.db.schema import TABLES, metadata

logger = structlog.get_logger()


class StorageClient(Protocol):
    """What the core needs from a store: row CRUD plus all-or-nothing transactions.

    Rows are plain dicts keyed by column name. ``transaction()`` is reentrant
    per thread: nested calls join the outermost transaction, and if the block
    raises every write made inside it is discarded.
    """

    def create(self, table: str, record: dict[str, Any]) -> dict[str, Any]: ...

    def find_by_id(self, table: str, id: str) -> dict[str, Any] | None: ...

    def select(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        ascending: bool = True,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[dict[str, Any]]: ...

    def update(self, table: str, id: str, data: dict[str, Any]) -> dict[str, Any] | None: ...

    def delete(self, table: str, id: str) -> bool: ...

    def delete_where(self, table: str, filters: dict[str, Any]) -> int: ...

    def transaction(self) -> AbstractContextManager[None]: ...


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class SQLClient:
    """``StorageClient`` over a SQLAlchemy engine (SQLite, Postgres, ...)."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._local = threading.local()

    @classmethod
    def from_url(cls, url: str, echo: bool = False) -> SQLClient:
        """Build a client from a database URL.

        SQLite connections are shared across threads; an in-memory SQLite
        database is pinned to a single connection so every session sees it.
        """
        engine_kwargs: dict[str, Any] = {"echo": echo}
        if url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if url in ("sqlite://", "sqlite:///:memory:"):
                engine_kwargs["poolclass"] = StaticPool

        engine = create_engine(url, **engine_kwargs)
        if url.startswith("sqlite"):
            event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return cls(engine)

    @property
    def engine(self) -> Engine:
        return self._engine

    def create_tables(self) -> None:
        metadata.create_all(self._engine)

    def close(self) -> None:
        self._engine.dispose()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if getattr(self._local, "connection", None) is not None:
            yield
            return

        with self._engine.begin() as conn:
            self._local.connection = conn
            try:
                yield
            finally:
                self._local.connection = None

    @contextmanager
    def _connection(self) -> Iterator[Connection]:
        conn = getattr(self._local, "connection", None)
        if conn is not None:
            yield conn
        else:
            with self._engine.begin() as conn:
                yield conn

    def create(self, table: str, record: dict[str, Any]) -> dict[str, Any]:
        """Insert a record and return the created row."""
        with self._connection() as conn:
            conn.execute(TABLES[table].insert().values(**record))
        return dict(record)

    def find_by_id(self, table: str, id: str) -> dict[str, Any] | None:
        t = TABLES[table]
        with self._connection() as conn:
            row = conn.execute(t.select().where(t.c.id == id)).mappings().first()
        return dict(row) if row is not None else None

    def select(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        ascending: bool = True,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[dict[str, Any]]:
        """Select records with optional equality filters, ordering, and paging."""
        t = TABLES[table]
        query = t.select()

        if filters:
            for key, value in filters.items():
                query = query.where(t.c[key] == value)

        if order_by:
            column = t.c[order_by]
            query = query.order_by(column.asc() if ascending else column.desc())

        if limit:
            query = query.limit(limit)
        if offset:
            query = query.offset(offset)

        with self._connection() as conn:
            return [dict(row) for row in conn.execute(query).mappings()]

    def update(self, table: str, id: str, data: dict[str, Any]) -> dict[str, Any] | None:
        """Update a record by ID and return the row as stored, or None if it does not exist."""
        t = TABLES[table]
        with self._connection() as conn:
            result = conn.execute(t.update().where(t.c.id == id).values(**data))
            if result.rowcount == 0:
                return None
            row = conn.execute(t.select().where(t.c.id == id)).mappings().first()
        return dict(row)

    def delete(self, table: str, id: str) -> bool:
        t = TABLES[table]
        with self._connection() as conn:
            result = conn.execute(t.delete().where(t.c.id == id))
        return result.rowcount > 0

    def delete_where(self, table: str, filters: dict[str, Any]) -> int:
        t = TABLES[table]
        query = t.delete()
        for key, value in filters.items():
            query = query.where(t.c[key] == value)
        with self._connection() as conn:
            result = conn.execute(query)
        return result.rowcount


@lru_cache
def get_storage_client() -> StorageClient:
    """Get cached storage client for the configured database."""
    settings = get_settings()
    client = SQLClient.from_url(settings.database_url, echo=settings.database_echo)
    client.create_tables()
    logger.info("storage.connected", url=client.engine.url.render_as_string(hide_password=True))
    return client
