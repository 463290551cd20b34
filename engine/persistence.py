"""
Bridge between the asset fan-out and the trading-state stores.

Engine events become store writes (scope = asset key) and, on startup, stored
state is loaded back into the engines. `state` is either a TradingState
(in-process stores) or a StateApiClient (remote HTTP surface). Store failures
propagate to the caller; nothing is retried here.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Protocol

from engine.fanout import AssetFanout
from engine.types import Asset, StrategyConfig, TradingStatus
from state.models import Position, Trade

logger = logging.getLogger(__name__)


class StateSink(Protocol):
    def get_strategy_config(self, scope: str) -> Any: ...

    def save_strategy_config(self, scope: str, config: Any) -> None: ...

    def get_trades(self, scope: str) -> list[Trade]: ...

    def save_trade(self, scope: str, trade: Trade) -> None: ...

    def get_positions(self, scope: str) -> list[Position]: ...

    def save_positions(self, scope: str, positions: Iterable[Position]) -> None: ...


class StatePersister:
    def __init__(self, state: StateSink, fanout: AssetFanout) -> None:
        self._state = state
        self._fanout = fanout

    def attach(self) -> None:
        """Route every engine status and trade event into the stores."""
        self._fanout.set_status_callback(self.on_status)
        self._fanout.set_trade_callback(self.on_trade)

    def on_trade(self, asset: Asset, trade: Trade) -> None:
        self._state.save_trade(asset.scope, trade)

    def on_status(self, asset: Asset, status: TradingStatus) -> None:
        self._state.save_positions(asset.scope, status.positions)

    def save_config(self, asset: Asset | str) -> None:
        key = Asset.parse(asset)
        if key is None:
            logger.warning("save_config: unknown asset %r", asset)
            return
        config = self._fanout.get_strategy_config(key)
        self._state.save_strategy_config(key.scope, config.to_dict())

    def update_strategy_config(self, asset: Asset | str, partial: Mapping[str, Any]) -> None:
        """Apply a partial config to the engine, then persist the full result."""
        self._fanout.update_strategy_config(asset, partial)
        self.save_config(asset)

    def hydrate(self) -> None:
        """Load stored config, trades and positions into every engine."""
        for asset in self._fanout.get_assets():
            engine = self._fanout.get_engine(asset)
            if engine is None:
                continue
            stored = self._state.get_strategy_config(asset.scope)
            if isinstance(stored, Mapping):
                config = StrategyConfig.from_dict(stored)
                self._fanout.update_strategy_config(asset, config.to_dict())
            elif stored is not None:
                logger.warning("Ignoring non-object strategy config for %s", asset.scope)

            trades = self._state.get_trades(asset.scope)
            positions = self._state.get_positions(asset.scope)
            engine.restore(trades, positions)
            logger.info(
                "Hydrated %s: %d trade(s), %d position(s)", asset.scope, len(trades), len(positions)
            )
