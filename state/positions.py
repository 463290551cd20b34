"""
Position set store. Whole-set replacement: after a write, the positions
stored for a scope are exactly the ones submitted, and an empty submission
clears the scope.

The replacement is a delete followed by an insert, two separate store
operations. A reader between them sees an empty set, and a failure after the
delete leaves the scope empty. This gap is accepted; closing it needs a
transaction at the store level.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from state.models import Position
from state.scope import DEFAULT_SCOPE
from storage.base import TableBackend

logger = logging.getLogger(__name__)

TABLE = "positions"


def _accept(item: Any) -> Position | None:
    """Elements without a non-empty string id are dropped, not rejected."""
    if isinstance(item, Position):
        return item if item.id else None
    if isinstance(item, Mapping) and isinstance(item.get("id"), str) and item["id"]:
        return Position.from_payload(item)
    return None


class PositionSetStore:
    def __init__(self, backend: TableBackend) -> None:
        self._backend = backend

    def get(self, scope: str = DEFAULT_SCOPE) -> list[Position]:
        rows = self._backend.select(TABLE, filters={"scope": scope})
        return [Position.from_row(r) for r in rows]

    def put(self, scope: str, positions: Iterable[Any]) -> list[Position]:
        """Replace the scope's position set. Returns the stored positions."""
        items = list(positions)
        accepted = [p for p in (_accept(item) for item in items) if p is not None]
        if len(accepted) < len(items):
            logger.warning("Dropped %d malformed position(s) for scope %s", len(items) - len(accepted), scope)

        self._backend.delete(TABLE, {"scope": scope})
        if not accepted:
            logger.debug("Positions cleared for scope %s", scope)
            return []

        self._backend.insert(TABLE, [p.to_row(scope) for p in accepted])
        logger.debug("Positions replaced for scope %s: %d", scope, len(accepted))
        return accepted
