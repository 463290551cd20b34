"""
Asset fan-out: one trading engine per asset, created once at construction.

Lifecycle, config and status calls are forwarded to the named asset's engine.
Per-engine status and trade events are re-emitted through a single sink tagged
with the asset. Unknown assets never raise: mutating calls are no-ops and
reads return defaults.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from engine.protocol import TradingEngine
from engine.types import ApiCredentials, Asset, StrategyConfig, TradingStatus
from state.models import Position, Trade

logger = logging.getLogger(__name__)

AssetStatusSink = Callable[[Asset, TradingStatus], None]
AssetTradeSink = Callable[[Asset, Trade], None]
EngineFactory = Callable[[Asset], TradingEngine]


class AssetFanout:
    """
    Usage:
        fanout = AssetFanout(lambda asset: MyEngine(asset), on_trade=persist_trade)
        fanout.start_trading("btc")
    """

    def __init__(
        self,
        engine_factory: EngineFactory,
        on_status: AssetStatusSink | None = None,
        on_trade: AssetTradeSink | None = None,
        assets: tuple[Asset, ...] = tuple(Asset),
    ) -> None:
        self._on_status = on_status
        self._on_trade = on_trade
        self._engines: dict[Asset, TradingEngine] = {}
        for asset in assets:
            engine = engine_factory(asset)
            engine.set_status_callback(lambda status, a=asset: self._emit_status(a, status))
            engine.set_trade_callback(lambda trade, a=asset: self._emit_trade(a, trade))
            self._engines[asset] = engine

    # ── Event sinks ──

    def set_status_callback(self, callback: AssetStatusSink | None) -> None:
        """Replace the status sink for every asset."""
        self._on_status = callback

    def set_trade_callback(self, callback: AssetTradeSink | None) -> None:
        """Replace the trade sink for every asset."""
        self._on_trade = callback

    def _emit_status(self, asset: Asset, status: TradingStatus) -> None:
        if self._on_status is not None:
            self._on_status(asset, status)

    def _emit_trade(self, asset: Asset, trade: Trade) -> None:
        if self._on_trade is not None:
            self._on_trade(asset, trade)

    # ── Lookup ──

    def get_engine(self, asset: Asset | str) -> TradingEngine | None:
        key = Asset.parse(asset)
        return self._engines.get(key) if key is not None else None

    def get_assets(self) -> list[Asset]:
        return list(self._engines)

    # ── Delegation ──

    def update_market_data(
        self,
        asset: Asset | str,
        current_price: float | None,
        price_to_beat: float | None,
        active_event: Any = None,
    ) -> None:
        engine = self.get_engine(asset)
        if engine is not None:
            engine.update_market_data(current_price, price_to_beat, active_event)

    def start_trading(self, asset: Asset | str) -> None:
        engine = self.get_engine(asset)
        if engine is None:
            logger.warning("start_trading: unknown asset %r", asset)
            return
        engine.start_trading()

    def stop_trading(self, asset: Asset | str) -> None:
        engine = self.get_engine(asset)
        if engine is not None:
            engine.stop_trading()

    def stop_all_trading(self) -> None:
        for engine in self._engines.values():
            engine.stop_trading()

    def get_strategy_config(self, asset: Asset | str) -> StrategyConfig:
        engine = self.get_engine(asset)
        return engine.get_strategy_config() if engine is not None else StrategyConfig()

    def update_strategy_config(self, asset: Asset | str, partial: Mapping[str, Any]) -> None:
        engine = self.get_engine(asset)
        if engine is not None:
            engine.update_strategy_config(partial)

    def get_status(self, asset: Asset | str) -> TradingStatus:
        engine = self.get_engine(asset)
        return engine.get_status() if engine is not None else TradingStatus()

    def get_positions(self, asset: Asset | str) -> list[Position]:
        engine = self.get_engine(asset)
        return engine.get_positions() if engine is not None else []

    def get_trades(self, asset: Asset | str) -> list[Trade]:
        engine = self.get_engine(asset)
        return engine.get_trades() if engine is not None else []

    def set_api_credentials(self, asset: Asset | str | None, credentials: ApiCredentials) -> None:
        """None broadcasts to every engine."""
        if asset is None:
            for engine in self._engines.values():
                engine.set_api_credentials(credentials)
            return
        engine = self.get_engine(asset)
        if engine is not None:
            engine.set_api_credentials(credentials)
