"""
Values exchanged with the per-asset trading engines. Pure data, no behavior.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Mapping

from state.models import Position


class Asset(str, Enum):
    BTC = "btc"
    ETH = "eth"
    SOL = "sol"
    XRP = "xrp"

    @classmethod
    def parse(cls, value: Any) -> Asset | None:
        """Enum member for an asset key (case-insensitive), None if unknown."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return None
        return None

    @property
    def scope(self) -> str:
        """Store scope holding this asset's state."""
        return self.value


# camelCase wire name -> dataclass field
_CONFIG_KEYS = {
    "enabled": "enabled",
    "entryPrice": "entry_price",
    "profitTargetPrice": "profit_target_price",
    "stopLossPrice": "stop_loss_price",
    "tradeSize": "trade_size",
    "priceDifference": "price_difference",
    "flipGuardPendingDistanceUsd": "flip_guard_pending_distance_usd",
    "flipGuardFilledDistanceUsd": "flip_guard_filled_distance_usd",
    "entryTimeRemainingMaxSeconds": "entry_time_remaining_max_seconds",
}


@dataclass(frozen=True)
class StrategyConfig:
    enabled: bool = False
    entry_price: float = 96
    profit_target_price: float = 99
    stop_loss_price: float = 91
    trade_size: float = 50
    price_difference: float | None = None
    # Flip guard: distance (USD) from price-to-beat before reversing a position
    flip_guard_pending_distance_usd: float = 15
    flip_guard_filled_distance_usd: float = 5
    entry_time_remaining_max_seconds: float = 180

    def to_dict(self) -> dict[str, Any]:
        return {wire: getattr(self, attr) for wire, attr in _CONFIG_KEYS.items()}

    def merged(self, partial: Mapping[str, Any]) -> StrategyConfig:
        """Copy with the camelCase keys of `partial` applied. Unknown keys are ignored."""
        changes = {_CONFIG_KEYS[k]: v for k, v in partial.items() if k in _CONFIG_KEYS}
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> StrategyConfig:
        return cls().merged(data)


@dataclass
class TradingStatus:
    is_active: bool = False
    total_trades: int = 0
    successful_trades: int = 0
    failed_trades: int = 0
    total_profit: float = 0.0
    pending_limit_orders: int = 0
    positions: list[Position] = field(default_factory=list)
    total_position_size: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "isActive": self.is_active,
            "totalTrades": self.total_trades,
            "successfulTrades": self.successful_trades,
            "failedTrades": self.failed_trades,
            "totalProfit": self.total_profit,
            "pendingLimitOrders": self.pending_limit_orders,
            "positions": [p.to_dict() for p in self.positions],
            "totalPositionSize": self.total_position_size,
        }


@dataclass(frozen=True)
class ApiCredentials:
    key: str
    secret: str
    passphrase: str

    def __repr__(self) -> str:
        return f"ApiCredentials(key={self.key[:4]}...)"
