"""
Trading engine protocol. The fan-out layer only routes calls to engines; it
never looks inside them.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Protocol, runtime_checkable

from engine.types import ApiCredentials, StrategyConfig, TradingStatus
from state.models import Position, Trade

StatusCallback = Callable[[TradingStatus], None]
TradeCallback = Callable[[Trade], None]


@runtime_checkable
class TradingEngine(Protocol):
    """One engine trades one asset."""

    def set_status_callback(self, callback: StatusCallback) -> None: ...

    def set_trade_callback(self, callback: TradeCallback) -> None: ...

    def update_market_data(
        self,
        current_price: float | None,
        price_to_beat: float | None,
        active_event: Any = None,
    ) -> None: ...

    def start_trading(self) -> None: ...

    def stop_trading(self) -> None: ...

    def get_strategy_config(self) -> StrategyConfig: ...

    def update_strategy_config(self, partial: Mapping[str, Any]) -> None: ...

    def get_status(self) -> TradingStatus: ...

    def get_positions(self) -> list[Position]: ...

    def get_trades(self) -> list[Trade]: ...

    def set_api_credentials(self, credentials: ApiCredentials) -> None: ...

    def restore(self, trades: list[Trade], positions: list[Position]) -> None:
        """Load persisted trades and positions after a restart."""
        ...
