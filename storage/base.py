"""
Table backend protocol. The four resource stores talk to the remote store only
through this interface: single-table upserts, equality-filtered selects and
equality-filtered deletes. No cross-statement transactions are offered.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol, Sequence, runtime_checkable

# Known tables and their columns. Backends reject anything else.
TABLES: dict[str, tuple[str, ...]] = {
    "event_state": ("event_slug", "price_to_beat", "last_price", "updated_at"),
    "strategy_config": ("scope", "config", "updated_at"),
    "trades": (
        "scope", "id", "event_slug", "token_id", "side", "size", "price",
        "timestamp", "status", "transaction_hash", "profit", "reason",
        "order_type", "limit_price", "direction",
    ),
    "positions": (
        "scope", "id", "event_slug", "token_id", "side", "entry_price", "size",
        "entry_timestamp", "current_price", "unrealized_profit", "direction",
        "filled_orders",
    ),
}

Row = dict[str, Any]


@runtime_checkable
class TableBackend(Protocol):
    """
    Minimal relational store interface.

    Every method is one round trip to the store and raises StoreError when the
    store rejects the operation.
    """

    def select(
        self,
        table: str,
        columns: Sequence[str] | None = None,
        filters: Mapping[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[Row]:
        """Rows matching every equality filter, optionally ordered by one column."""
        ...

    def upsert(self, table: str, rows: Sequence[Mapping[str, Any]], on_conflict: Sequence[str]) -> None:
        """Insert rows, overwriting the given columns of rows that share the conflict key."""
        ...

    def insert(self, table: str, rows: Sequence[Mapping[str, Any]]) -> None:
        """Insert rows. Fails on key conflict."""
        ...

    def delete(self, table: str, filters: Mapping[str, Any]) -> None:
        """Delete every row matching the equality filters."""
        ...

    def close(self) -> None:
        ...


def check_columns(table: str, columns: Sequence[str]) -> None:
    """Raise ValueError for an unknown table or column."""
    known = TABLES.get(table)
    if known is None:
        raise ValueError(f"unknown table: {table}")
    for col in columns:
        if col not in known:
            raise ValueError(f"unknown column {table}.{col}")
