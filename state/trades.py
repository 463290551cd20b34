"""
Trade log store. Append/overwrite only: a write with an existing (scope, id)
overwrites that trade, which is how status transitions (pending -> filled)
and late fields (transaction hash, profit) land.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from errors import ValidationError
from state.models import Trade
from state.scope import DEFAULT_SCOPE
from storage.base import TableBackend

logger = logging.getLogger(__name__)

TABLE = "trades"


class TradeLogStore:
    def __init__(self, backend: TableBackend) -> None:
        self._backend = backend

    def get(self, scope: str = DEFAULT_SCOPE) -> list[Trade]:
        """All trades for `scope`, newest first."""
        rows = self._backend.select(TABLE, filters={"scope": scope}, order_by="timestamp", descending=True)
        return [Trade.from_row(r) for r in rows]

    def put(self, scope: str, trade: Any) -> Trade:
        """Normalize and upsert one trade. Returns the stored record."""
        if isinstance(trade, Trade):
            record = trade
        elif isinstance(trade, Mapping) and isinstance(trade.get("id"), str) and trade["id"]:
            record = Trade.from_payload(trade)
        else:
            raise ValidationError("trade with id is required")
        if not record.id:
            raise ValidationError("trade with id is required")

        self._backend.upsert(TABLE, [record.to_row(scope)], on_conflict=("scope", "id"))
        logger.debug("Trade %s saved for scope %s (%s)", record.id, scope, record.status.value)
        return record
