"""
TradingState: the four resource stores behind one object.

Method names match client.state_api.StateApiClient so either can back the
engine persistence bridge.
"""

from __future__ import annotations

from typing import Any, Iterable

from state.event_state import EventStateStore
from state.models import EventStateSnapshot, Position, Trade
from state.positions import PositionSetStore
from state.scope import DEFAULT_SCOPE
from state.strategy_config import StrategyConfigStore
from state.trades import TradeLogStore
from storage.base import TableBackend


class TradingState:
    def __init__(self, backend: TableBackend) -> None:
        self.backend = backend
        self.event_state = EventStateStore(backend)
        self.strategy_config = StrategyConfigStore(backend)
        self.trades = TradeLogStore(backend)
        self.positions = PositionSetStore(backend)

    def get_event_state(self) -> EventStateSnapshot:
        return self.event_state.get()

    def save_event_state(
        self,
        event_slug: str,
        price_to_beat: float | None = None,
        last_price: float | None = None,
    ) -> None:
        update: dict[str, float] = {}
        if price_to_beat is not None:
            update["priceToBeat"] = price_to_beat
        if last_price is not None:
            update["lastPrice"] = last_price
        self.event_state.put(event_slug, update)

    def get_strategy_config(self, scope: str) -> Any:
        return self.strategy_config.get(scope)

    def get_all_strategy_configs(self) -> dict[str, Any]:
        return self.strategy_config.get_all()

    def save_strategy_config(self, scope: str, config: Any) -> None:
        self.strategy_config.put(scope, config)

    def get_trades(self, scope: str = DEFAULT_SCOPE) -> list[Trade]:
        return self.trades.get(scope)

    def save_trade(self, scope: str, trade: Trade | dict) -> None:
        self.trades.put(scope, trade)

    def get_positions(self, scope: str = DEFAULT_SCOPE) -> list[Position]:
        return self.positions.get(scope)

    def save_positions(self, scope: str, positions: Iterable[Position | dict]) -> None:
        self.positions.put(scope, positions)

    def close(self) -> None:
        self.backend.close()
