"""
Strategy config store: one opaque config document per scope. A write replaces
the stored document wholesale.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from errors import ValidationError
from storage.base import TableBackend

logger = logging.getLogger(__name__)

TABLE = "strategy_config"


class StrategyConfigStore:
    def __init__(self, backend: TableBackend) -> None:
        self._backend = backend

    def get(self, scope: str | None = None) -> Any:
        """Config for `scope` (None if absent), or {scope: config} when no scope is given."""
        if scope:
            rows = self._backend.select(TABLE, columns=("scope", "config"), filters={"scope": scope})
            return rows[0]["config"] if rows else None
        return self.get_all()

    def get_all(self) -> dict[str, Any]:
        rows = self._backend.select(TABLE, columns=("scope", "config"))
        return {row["scope"]: row["config"] for row in rows}

    def put(self, scope: Any, config: Any) -> None:
        scope = scope.strip() if isinstance(scope, str) else ""
        if not scope:
            raise ValidationError("scope is required")
        if config is None:
            raise ValidationError("config is required")
        self._backend.upsert(
            TABLE,
            [{"scope": scope, "config": config, "updated_at": datetime.now(timezone.utc).isoformat()}],
            on_conflict=("scope",),
        )
        logger.debug("Strategy config replaced for scope %s", scope)
