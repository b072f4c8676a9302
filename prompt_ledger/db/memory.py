"""In-memory ``StorageClient`` for development and tests.

Implements the same contract as ``SQLClient``: per-thread reentrant
transactions backed by an undo log, and the unique constraints declared in
the SQL schema.
"""

from __future__ import annotations

import copy
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Callable

from sqlalchemy import UniqueConstraint

from prompt_ledger.db.schema import TABLES


def _unique_keys(table: str) -> list[tuple[str, ...]]:
    return [
        tuple(column.name for column in constraint.columns)
        for constraint in TABLES[table].constraints
        if isinstance(constraint, UniqueConstraint)
    ]


class InMemoryClient:
    """Dict-backed store. Rows are deep-copied on the way in and out."""

    def __init__(self) -> None:
        self._tables: dict[str, dict[str, dict[str, Any]]] = {name: {} for name in TABLES}
        self._unique = {name: _unique_keys(name) for name in TABLES}
        self._lock = threading.RLock()
        self._local = threading.local()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if getattr(self._local, "undo", None) is not None:
            yield
            return

        self._local.undo = []
        try:
            yield
        except BaseException:
            with self._lock:
                for revert in reversed(self._local.undo):
                    revert()
            raise
        finally:
            self._local.undo = None

    def _record(self, revert: Callable[[], None]) -> None:
        undo = getattr(self._local, "undo", None)
        if undo is not None:
            undo.append(revert)

    def _rows(self, table: str) -> dict[str, dict[str, Any]]:
        if table not in self._tables:
            raise KeyError(f"Unknown table '{table}'")
        return self._tables[table]

    def _check_unique(self, table: str, record: dict[str, Any], skip_id: str | None = None) -> None:
        rows = self._rows(table)
        if record["id"] in rows and record["id"] != skip_id:
            raise ValueError(f"Duplicate id '{record['id']}' in {table}")
        for columns in self._unique[table]:
            key = tuple(record.get(c) for c in columns)
            for row in rows.values():
                if row["id"] != skip_id and tuple(row.get(c) for c in columns) == key:
                    raise ValueError(f"Duplicate {columns} {key} in {table}")

    def create(self, table: str, record: dict[str, Any]) -> dict[str, Any]:
        with self._lock:
            self._check_unique(table, record)
            rows = self._rows(table)
            row_id = record["id"]
            rows[row_id] = copy.deepcopy(record)
            self._record(lambda: rows.pop(row_id, None))
        return copy.deepcopy(record)

    def find_by_id(self, table: str, id: str) -> dict[str, Any] | None:
        with self._lock:
            row = self._rows(table).get(id)
            return copy.deepcopy(row) if row is not None else None

    def select(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        ascending: bool = True,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[dict[str, Any]]:
        with self._lock:
            rows = list(self._rows(table).values())
            if filters:
                for key, value in filters.items():
                    rows = [r for r in rows if r.get(key) == value]
            if order_by:
                rows = sorted(rows, key=lambda r: r.get(order_by), reverse=not ascending)
            if offset:
                rows = rows[offset:]
            if limit:
                rows = rows[:limit]
            return copy.deepcopy(rows)

    def update(self, table: str, id: str, data: dict[str, Any]) -> dict[str, Any] | None:
        with self._lock:
            rows = self._rows(table)
            if id not in rows:
                return None
            before = rows[id]
            after = {**copy.deepcopy(before), **copy.deepcopy(data)}
            self._check_unique(table, after, skip_id=id)
            rows[id] = after
            self._record(lambda: rows.__setitem__(id, before))
            return copy.deepcopy(after)

    def delete(self, table: str, id: str) -> bool:
        with self._lock:
            rows = self._rows(table)
            row = rows.pop(id, None)
            if row is None:
                return False
            self._record(lambda: rows.__setitem__(id, row))
            return True

    def delete_where(self, table: str, filters: dict[str, Any]) -> int:
        with self._lock:
            doomed = [
                row["id"]
                for row in self._rows(table).values()
                if all(row.get(k) == v for k, v in filters.items())
            ]
            for row_id in doomed:
                self.delete(table, row_id)
            return len(doomed)

    def reset(self) -> None:
        with self._lock:
            for rows in self._tables.values():
                rows.clear()
