"""
SQLite table backend. WAL mode for concurrent read/write, one connection per
thread, schema auto-created on first connect.

Each statement commits on its own. The position store's delete + insert pair
therefore has the same failure window as the remote store.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from pathlib import Path
from typing import Any, Mapping, Sequence

from errors import StoreError
from storage.base import TABLES, Row, check_columns

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path("trading_state.db")

# Columns holding structured values, stored as JSON text.
_JSON_COLUMNS: dict[str, frozenset[str]] = {
    "strategy_config": frozenset({"config"}),
}

_SCHEMA = """
CREATE TABLE IF NOT EXISTS event_state (
    event_slug TEXT PRIMARY KEY,
    price_to_beat REAL,
    last_price REAL,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_event_state_updated ON event_state(updated_at);

CREATE TABLE IF NOT EXISTS strategy_config (
    scope TEXT PRIMARY KEY,
    config TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS trades (
    scope TEXT NOT NULL,
    id TEXT NOT NULL,
    event_slug TEXT NOT NULL DEFAULT '',
    token_id TEXT NOT NULL DEFAULT '',
    side TEXT NOT NULL DEFAULT 'BUY',
    size REAL,
    price REAL,
    timestamp INTEGER,
    status TEXT NOT NULL DEFAULT 'pending',
    transaction_hash TEXT,
    profit REAL,
    reason TEXT NOT NULL DEFAULT '',
    order_type TEXT NOT NULL DEFAULT 'MARKET',
    limit_price REAL,
    direction TEXT,
    PRIMARY KEY (scope, id)
);
CREATE INDEX IF NOT EXISTS idx_trades_scope_ts ON trades(scope, timestamp);

CREATE TABLE IF NOT EXISTS positions (
    scope TEXT NOT NULL,
    id TEXT NOT NULL,
    event_slug TEXT NOT NULL DEFAULT '',
    token_id TEXT NOT NULL DEFAULT '',
    side TEXT NOT NULL DEFAULT 'BUY',
    entry_price REAL,
    size REAL,
    entry_timestamp INTEGER,
    current_price REAL,
    unrealized_profit REAL,
    direction TEXT,
    filled_orders TEXT,
    PRIMARY KEY (scope, id)
);
"""


def _dict_factory(cursor: sqlite3.Cursor, row: tuple) -> dict[str, Any]:
    return {col[0]: row[i] for i, col in enumerate(cursor.description)}


class SQLiteBackend:
    """Thread-safe SQLite implementation of TableBackend."""

    def __init__(self, db_path: str | Path | None = None) -> None:
        self._db_path = str(db_path or DEFAULT_DB_PATH)
        self._local = threading.local()
        self._conns: list[sqlite3.Connection] = []
        self._conns_lock = threading.Lock()
        self._init_schema()

    @property
    def db_path(self) -> str:
        return self._db_path

    @property
    def _conn(self) -> sqlite3.Connection:
        conn = getattr(self._local, "conn", None)
        if conn is None:
            conn = sqlite3.connect(self._db_path, check_same_thread=False)
            conn.row_factory = _dict_factory
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA busy_timeout=5000")
            self._local.conn = conn
            with self._conns_lock:
                self._conns.append(conn)
        return conn

    def _init_schema(self) -> None:
        conn = self._conn
        conn.executescript(_SCHEMA)
        conn.commit()

    def _execute(self, sql: str, params: Sequence[Any] = ()) -> list[Row]:
        conn = self._conn
        try:
            rows = conn.execute(sql, params).fetchall()
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreError(str(e)) from e
        return rows

    def _executemany(self, sql: str, params: list[tuple]) -> None:
        conn = self._conn
        try:
            conn.executemany(sql, params)
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreError(str(e)) from e

    # ── Encoding ──

    def _encode(self, table: str, col: str, value: Any) -> Any:
        if col in _JSON_COLUMNS.get(table, ()) and value is not None:
            return json.dumps(value)
        return value

    def _decode(self, table: str, row: Row) -> Row:
        for col in _JSON_COLUMNS.get(table, ()):
            raw = row.get(col)
            if isinstance(raw, str):
                try:
                    row[col] = json.loads(raw)
                except json.JSONDecodeError:
                    logger.warning("Undecodable %s.%s value, returning raw text", table, col)
        return row

    # ── TableBackend ──

    def select(
        self,
        table: str,
        columns: Sequence[str] | None = None,
        filters: Mapping[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[Row]:
        cols = list(columns) if columns else list(TABLES.get(table, ()))
        filters = dict(filters or {})
        check_columns(table, cols + list(filters) + ([order_by] if order_by else []))

        query = f"SELECT {', '.join(cols)} FROM {table}"
        params: list[Any] = []
        if filters:
            query += " WHERE " + " AND ".join(f"{col} = ?" for col in filters)
            params.extend(filters.values())
        if order_by:
            query += f" ORDER BY {order_by} {'DESC' if descending else 'ASC'}"
        return [self._decode(table, r) for r in self._execute(query, params)]

    def upsert(self, table: str, rows: Sequence[Mapping[str, Any]], on_conflict: Sequence[str]) -> None:
        if not rows:
            return
        cols = list(rows[0])
        check_columns(table, cols + list(on_conflict))
        updates = [c for c in cols if c not in on_conflict]
        sql = (
            f"INSERT INTO {table} ({', '.join(cols)}) "
            f"VALUES ({', '.join('?' for _ in cols)}) "
            f"ON CONFLICT({', '.join(on_conflict)}) "
        )
        if updates:
            sql += "DO UPDATE SET " + ", ".join(f"{c} = excluded.{c}" for c in updates)
        else:
            sql += "DO NOTHING"
        self._executemany(sql, [tuple(self._encode(table, c, r.get(c)) for c in cols) for r in rows])

    def insert(self, table: str, rows: Sequence[Mapping[str, Any]]) -> None:
        if not rows:
            return
        cols = list(rows[0])
        check_columns(table, cols)
        sql = f"INSERT INTO {table} ({', '.join(cols)}) VALUES ({', '.join('?' for _ in cols)})"
        self._executemany(sql, [tuple(self._encode(table, c, r.get(c)) for c in cols) for r in rows])

    def delete(self, table: str, filters: Mapping[str, Any]) -> None:
        if not filters:
            raise ValueError("delete requires at least one filter")
        check_columns(table, list(filters))
        where = " AND ".join(f"{col} = ?" for col in filters)
        self._execute(f"DELETE FROM {table} WHERE {where}", list(filters.values()))

    def close(self) -> None:
        """Close every connection opened by this backend."""
        with self._conns_lock:
            for conn in self._conns:
                conn.close()
            self._conns.clear()
        self._local = threading.local()
