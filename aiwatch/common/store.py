"""
Key-Value Store

Ordered map keyed by (partition, sort) with point lookup, upsert, point
delete and paginated range scan by partition. Every row carries an
expires_at epoch; expired rows are invisible to reads and reclaimed by the
store itself.

Implementations:
- InMemoryStore: tests and single-process dry runs
- SqliteStore: durable local backend
"""

from __future__ import annotations

import json
import re
import sqlite3
import threading
import time
from abc import ABC, abstractmethod
from contextlib import closing
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from .errors import StoreError

_TABLE_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass
class QueryPage:
    """One page of a partition range scan"""
    items: List[Dict[str, Any]] = field(default_factory=list)
    last_key: Optional[str] = None  # sort key to resume after, None when drained


class KeyValueStore(ABC):
    """Storage operations required by the ledger."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock

    def now(self) -> int:
        return int(self._clock())

    @abstractmethod
    def get(self, table: str, partition: str, sort: str = "") -> Optional[Dict[str, Any]]:
        """Return the live item at (partition, sort) or None"""

    @abstractmethod
    def put(self, table: str, partition: str, sort: str, item: Dict[str, Any], expires_at: int) -> None:
        """Upsert an item; last write wins"""

    @abstractmethod
    def delete(self, table: str, partition: str, sort: str = "") -> None:
        """Delete an item; deleting a missing key is not an error"""

    @abstractmethod
    def query(
        self,
        table: str,
        partition: str,
        limit: int = 100,
        start_after: Optional[str] = None,
    ) -> QueryPage:
        """Return live items of a partition in ascending sort-key order"""


class InMemoryStore(KeyValueStore):
    """Dict-backed store. Not shared across processes; safe across threads."""

    def __init__(self, clock: Callable[[], float] = time.time):
        super().__init__(clock)
        self._tables: Dict[str, Dict[Tuple[str, str], Tuple[Dict[str, Any], int]]] = {}
        self._lock = threading.RLock()

    def _table(self, table: str):
        return self._tables.setdefault(table, {})

    def _reclaim(self, table: str) -> None:
        now = self.now()
        rows = self._table(table)
        for key in [k for k, (_, expires_at) in rows.items() if expires_at <= now]:
            del rows[key]

    def get(self, table, partition, sort=""):
        with self._lock:
            self._reclaim(table)
            row = self._table(table).get((partition, sort))
            return dict(row[0]) if row else None

    def put(self, table, partition, sort, item, expires_at):
        with self._lock:
            self._table(table)[(partition, sort)] = (dict(item), int(expires_at))

    def delete(self, table, partition, sort=""):
        with self._lock:
            self._table(table).pop((partition, sort), None)

    def query(self, table, partition, limit=100, start_after=None):
        with self._lock:
            self._reclaim(table)
            rows = self._table(table)
            keys = sorted(
                sort for (part, sort) in rows
                if part == partition and (start_after is None or sort > start_after)
            )
            page_keys = keys[:limit]
            items = [dict(rows[(partition, k)][0]) for k in page_keys]
        last_key = page_keys[-1] if len(keys) > limit else None
        return QueryPage(items=items, last_key=last_key)

    def count(self, table: str) -> int:
        with self._lock:
            self._reclaim(table)
            return len(self._table(table))


class SqliteStore(KeyValueStore):
    """SQLite-backed store. One SQL table per logical table name."""

    def __init__(self, db_path: str, timeout: float = 10.0, clock: Callable[[], float] = time.time):
        super().__init__(clock)
        self._db_path = str(Path(db_path).expanduser())
        self._timeout = timeout
        self._known_tables = set()
        Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, timeout=self._timeout)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_table(self, conn: sqlite3.Connection, table: str) -> None:
        if table in self._known_tables:
            return
        if not _TABLE_NAME_RE.match(table):
            raise StoreError(f"Invalid table name: {table!r}")
        conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {table} (
                partition_key TEXT NOT NULL,
                sort_key TEXT NOT NULL,
                item TEXT NOT NULL,
                expires_at INTEGER NOT NULL,
                PRIMARY KEY (partition_key, sort_key)
            )
            """
        )
        # Expired rows are reclaimed once per table per process
        conn.execute(f"DELETE FROM {table} WHERE expires_at <= ?", (self.now(),))
        self._known_tables.add(table)

    def _run(self, table: str, fn):
        try:
            with closing(self._connect()) as conn:
                with conn:
                    self._ensure_table(conn, table)
                    return fn(conn)
        except sqlite3.Error as e:
            raise StoreError(f"SQLite error on {table}: {e}") from e

    def get(self, table, partition, sort=""):
        def _get(conn):
            row = conn.execute(
                f"SELECT item FROM {table} WHERE partition_key = ? AND sort_key = ? AND expires_at > ?",
                (partition, sort, self.now()),
            ).fetchone()
            return json.loads(row["item"]) if row else None

        return self._run(table, _get)

    def put(self, table, partition, sort, item, expires_at):
        def _put(conn):
            conn.execute(
                f"""
                INSERT INTO {table} (partition_key, sort_key, item, expires_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(partition_key, sort_key)
                DO UPDATE SET item = excluded.item, expires_at = excluded.expires_at
                """,
                (partition, sort, json.dumps(item, ensure_ascii=False), int(expires_at)),
            )

        self._run(table, _put)

    def delete(self, table, partition, sort=""):
        self._run(
            table,
            lambda conn: conn.execute(
                f"DELETE FROM {table} WHERE partition_key = ? AND sort_key = ?",
                (partition, sort),
            ),
        )

    def query(self, table, partition, limit=100, start_after=None):
        def _query(conn):
            rows = conn.execute(
                f"""
                SELECT sort_key, item FROM {table}
                WHERE partition_key = ? AND sort_key > ? AND expires_at > ?
                ORDER BY sort_key
                LIMIT ?
                """,
                (partition, start_after or "", self.now(), limit + 1),
            ).fetchall()
            page = rows[:limit]
            return QueryPage(
                items=[json.loads(r["item"]) for r in page],
                last_key=page[-1]["sort_key"] if len(rows) > limit else None,
            )

        return self._run(table, _query)
