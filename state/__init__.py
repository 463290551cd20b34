"""
Scoped trading-state stores: event state, strategy config, trade log and
position set, each partitioned by scope.

Usage:
    from state import TradingState
    state = TradingState(create_backend(cfg))
    state.save_trade("btc", {"id": "t1", "side": "BUY", ...})
"""

from __future__ import annotations

from state.models import (
    Direction,
    EventStateSnapshot,
    FilledOrder,
    OrderType,
    Position,
    Side,
    Trade,
    TradeStatus,
)
from state.scope import DEFAULT_SCOPE, normalize_scope
from state.service import TradingState

__all__ = [
    "DEFAULT_SCOPE",
    "Direction",
    "EventStateSnapshot",
    "FilledOrder",
    "OrderType",
    "Position",
    "Side",
    "Trade",
    "TradeStatus",
    "TradingState",
    "normalize_scope",
]
