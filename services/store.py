"""Keyed record storage.

``RecordStore`` is the seam to whatever database backs the deployment; it
only needs insert / get / update / delete and a filtered, newest-first query.
``InMemoryStore`` is the default used by the service and the test-suite.
"""

from __future__ import annotations

import copy
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Mapping

from engine.errors import PersistenceError, RecordNotFoundError

logger = logging.getLogger("credence.store")

Record = dict[str, Any]


class RecordStore(ABC):
    @abstractmethod
    def insert(self, table: str, record: Mapping[str, Any]) -> Record:
        """Store *record* (which must carry an ``id``) and return a copy."""

    @abstractmethod
    def get(self, table: str, record_id: str) -> Record | None: ...

    @abstractmethod
    def update(self, table: str, record_id: str, changes: Mapping[str, Any]) -> Record: ...

    @abstractmethod
    def delete(self, table: str, record_id: str) -> bool: ...

    @abstractmethod
    def query(
        self,
        table: str,
        *,
        filters: Mapping[str, Any] | None = None,
        where: Callable[[Record], bool] | None = None,
        order_by: str | None = None,
        descending: bool = True,
        limit: int | None = None,
    ) -> list[Record]:
        """Records whose fields equal *filters* (and satisfy *where*), ordered by *order_by*."""


class InMemoryStore(RecordStore):
    """Dict-of-dicts store.  Records are deep-copied on the way in and out."""

    def __init__(self) -> None:
        self._tables: dict[str, dict[str, Record]] = {}
        self._lock = threading.Lock()

    def _table(self, name: str) -> dict[str, Record]:
        return self._tables.setdefault(name, {})

    def insert(self, table: str, record: Mapping[str, Any]) -> Record:
        record_id = record.get("id")
        if not record_id:
            raise PersistenceError(f"{table}: record has no id")
        with self._lock:
            rows = self._table(table)
            if record_id in rows:
                raise PersistenceError(f"{table}: duplicate id {record_id}")
            rows[record_id] = copy.deepcopy(dict(record))
            return copy.deepcopy(rows[record_id])

    def get(self, table: str, record_id: str) -> Record | None:
        with self._lock:
            row = self._table(table).get(record_id)
            return copy.deepcopy(row) if row is not None else None

    def update(self, table: str, record_id: str, changes: Mapping[str, Any]) -> Record:
        with self._lock:
            rows = self._table(table)
            if record_id not in rows:
                raise RecordNotFoundError(f"{table}: no record {record_id}")
            rows[record_id].update(copy.deepcopy(dict(changes)))
            return copy.deepcopy(rows[record_id])

    def delete(self, table: str, record_id: str) -> bool:
        with self._lock:
            return self._table(table).pop(record_id, None) is not None

    def query(
        self,
        table: str,
        *,
        filters: Mapping[str, Any] | None = None,
        where: Callable[[Record], bool] | None = None,
        order_by: str | None = None,
        descending: bool = True,
        limit: int | None = None,
    ) -> list[Record]:
        with self._lock:
            rows = [copy.deepcopy(r) for r in self._table(table).values()]

        if filters:
            rows = [r for r in rows if all(r.get(k) == v for k, v in filters.items())]
        if where is not None:
            rows = [r for r in rows if where(r)]
        if order_by is not None:
            rows.sort(key=lambda r: r.get(order_by), reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        return rows
