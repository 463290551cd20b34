"""Shared fixtures: SQLite-backed stores and fake trading engines."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import pytest

from engine.types import ApiCredentials, Asset, StrategyConfig, TradingStatus
from state import TradingState
from state.models import Position, Trade
from storage.sqlite import SQLiteBackend


@pytest.fixture
def backend(tmp_path: Path) -> SQLiteBackend:
    b = SQLiteBackend(db_path=tmp_path / "test_state.db")
    yield b
    b.close()


@pytest.fixture
def state(backend: SQLiteBackend) -> TradingState:
    return TradingState(backend)


class FakeEngine:
    """Records every call; emits events on demand."""

    def __init__(self, asset: Asset) -> None:
        self.asset = asset
        self.active = False
        self.config = StrategyConfig()
        self.status = TradingStatus()
        self.positions: list[Position] = []
        self.trades: list[Trade] = []
        self.credentials: ApiCredentials | None = None
        self.market_data: list[tuple] = []
        self.restored: tuple[list[Trade], list[Position]] | None = None
        self._status_cb = None
        self._trade_cb = None

    def set_status_callback(self, callback) -> None:
        self._status_cb = callback

    def set_trade_callback(self, callback) -> None:
        self._trade_cb = callback

    def emit_status(self, status: TradingStatus) -> None:
        self._status_cb(status)

    def emit_trade(self, trade: Trade) -> None:
        self._trade_cb(trade)

    def update_market_data(self, current_price, price_to_beat, active_event=None) -> None:
        self.market_data.append((current_price, price_to_beat, active_event))

    def start_trading(self) -> None:
        self.active = True

    def stop_trading(self) -> None:
        self.active = False

    def get_strategy_config(self) -> StrategyConfig:
        return self.config

    def update_strategy_config(self, partial: Mapping[str, Any]) -> None:
        self.config = self.config.merged(partial)

    def get_status(self) -> TradingStatus:
        return self.status

    def get_positions(self) -> list[Position]:
        return list(self.positions)

    def get_trades(self) -> list[Trade]:
        return list(self.trades)

    def set_api_credentials(self, credentials: ApiCredentials) -> None:
        self.credentials = credentials

    def restore(self, trades: list[Trade], positions: list[Position]) -> None:
        self.restored = (trades, positions)
        self.trades = list(trades)
        self.positions = list(positions)


@pytest.fixture
def engines() -> dict[Asset, FakeEngine]:
    return {}


@pytest.fixture
def engine_factory(engines: dict[Asset, FakeEngine]):
    def _factory(asset: Asset) -> FakeEngine:
        engine = FakeEngine(asset)
        engines[asset] = engine
        return engine
    return _factory
