"""
Typed records persisted by the resource stores.

Payloads arrive as camelCase documents, rows are snake_case columns. Numeric
fields are coerced the way a browser client's Number() would coerce the JSON it
sends. Unparsable numbers become NaN, which is stored as NULL and rendered as
null.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

logger = logging.getLogger(__name__)


class Side(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class TradeStatus(str, Enum):
    PENDING = "pending"
    FILLED = "filled"
    FAILED = "failed"
    CANCELLED = "cancelled"


class OrderType(str, Enum):
    LIMIT = "LIMIT"
    MARKET = "MARKET"


class Direction(str, Enum):
    UP = "UP"
    DOWN = "DOWN"


# ── Coercion helpers ──

def to_number(value: Any) -> float:
    """Number()-style coercion. Absent or garbage input yields NaN."""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        try:
            return float(value)
        except OverflowError:
            return math.inf if value > 0 else -math.inf
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            return float(text)
        except ValueError:
            return math.nan
    return math.nan


def optional_number(value: Any) -> float | None:
    return None if value is None else to_number(value)


def to_text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), sort_keys=True, default=str)
    return str(value)


def _enum(cls: type[Enum], value: Any, default: Enum | None) -> Any:
    try:
        return cls(value)
    except ValueError:
        return default


def _timestamp(value: float | None) -> float | int | None:
    """Integral timestamps go back out as ints."""
    if value is not None and math.isfinite(value) and float(value).is_integer():
        return int(value)
    return value


def store_number(value: float | None) -> float | None:
    """NaN and infinities have no JSON form; persist and render them as null."""
    if value is None or not math.isfinite(value):
        return None
    return value


def read_number(value: Any) -> float:
    """Column value back to a float. NULL reads as NaN."""
    return math.nan if value is None else to_number(value)


# ── Records ──

@dataclass
class Trade:
    id: str
    event_slug: str = ""
    token_id: str = ""
    side: Side = Side.BUY
    size: float = math.nan
    price: float = math.nan
    timestamp: float = math.nan
    status: TradeStatus = TradeStatus.PENDING
    reason: str = ""
    order_type: OrderType = OrderType.MARKET
    transaction_hash: str | None = None
    profit: float | None = None
    limit_price: float | None = None
    direction: Direction | None = None

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> Trade:
        """Normalize a wire document. The caller checks `id` first."""
        return cls(
            id=str(data["id"]),
            event_slug=to_text(data.get("eventSlug")),
            token_id=to_text(data.get("tokenId")),
            side=_enum(Side, data.get("side"), Side.BUY),
            size=to_number(data.get("size")),
            price=to_number(data.get("price")),
            timestamp=to_number(data.get("timestamp")),
            status=_enum(TradeStatus, data.get("status"), TradeStatus.PENDING),
            reason=to_text(data.get("reason")),
            order_type=_enum(OrderType, data.get("orderType"), OrderType.MARKET),
            transaction_hash=None if data.get("transactionHash") is None else to_text(data["transactionHash"]),
            profit=optional_number(data.get("profit")),
            limit_price=optional_number(data.get("limitPrice")),
            direction=_enum(Direction, data.get("direction"), None),
        )

    def to_row(self, scope: str) -> dict[str, Any]:
        return {
            "id": self.id,
            "scope": scope,
            "event_slug": self.event_slug,
            "token_id": self.token_id,
            "side": self.side.value,
            "size": store_number(self.size),
            "price": store_number(self.price),
            "timestamp": store_number(self.timestamp),
            "status": self.status.value,
            "transaction_hash": self.transaction_hash,
            "profit": store_number(self.profit),
            "reason": self.reason,
            "order_type": self.order_type.value,
            "limit_price": store_number(self.limit_price),
            "direction": self.direction.value if self.direction else None,
        }

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Trade:
        return cls(
            id=str(row["id"]),
            event_slug=to_text(row.get("event_slug")),
            token_id=to_text(row.get("token_id")),
            side=_enum(Side, row.get("side"), Side.BUY),
            size=read_number(row.get("size")),
            price=read_number(row.get("price")),
            timestamp=read_number(row.get("timestamp")),
            status=_enum(TradeStatus, row.get("status"), TradeStatus.PENDING),
            reason=to_text(row.get("reason")),
            order_type=_enum(OrderType, row.get("order_type"), OrderType.MARKET),
            transaction_hash=None if row.get("transaction_hash") is None else str(row["transaction_hash"]),
            profit=optional_number(row.get("profit")),
            limit_price=optional_number(row.get("limit_price")),
            direction=_enum(Direction, row.get("direction"), None),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "eventSlug": self.event_slug,
            "tokenId": self.token_id,
            "side": self.side.value,
            "size": store_number(self.size),
            "price": store_number(self.price),
            "timestamp": store_number(_timestamp(self.timestamp)),
            "status": self.status.value,
            "reason": self.reason,
            "orderType": self.order_type.value,
        }
        if self.transaction_hash is not None:
            out["transactionHash"] = self.transaction_hash
        if self.profit is not None:
            out["profit"] = store_number(self.profit)
        if self.limit_price is not None:
            out["limitPrice"] = store_number(self.limit_price)
        if self.direction is not None:
            out["direction"] = self.direction.value
        return out


@dataclass
class FilledOrder:
    order_id: str
    price: float
    size: float
    timestamp: float

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> FilledOrder:
        return cls(
            order_id=to_text(data.get("orderId")),
            price=to_number(data.get("price")),
            size=to_number(data.get("size")),
            timestamp=to_number(data.get("timestamp")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "orderId": self.order_id,
            "price": store_number(self.price),
            "size": store_number(self.size),
            "timestamp": store_number(_timestamp(self.timestamp)),
        }


def parse_filled_orders(raw: Any) -> list[FilledOrder] | None:
    """
    Best-effort decode of a filled-orders blob (JSON text or an already decoded
    list). Anything that is not a list is treated as absent.
    """
    if raw is None:
        return None
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            logger.debug("Dropping unparsable filled_orders blob")
            return None
    if not isinstance(raw, list):
        return None
    return [FilledOrder.from_payload(item) for item in raw if isinstance(item, Mapping)]


@dataclass
class Position:
    id: str
    event_slug: str = ""
    token_id: str = ""
    side: Side = Side.BUY
    entry_price: float = math.nan
    size: float = math.nan
    entry_timestamp: float = math.nan
    current_price: float | None = None
    unrealized_profit: float | None = None
    direction: Direction | None = None
    filled_orders: list[FilledOrder] | None = None

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> Position:
        return cls(
            id=str(data["id"]),
            event_slug=to_text(data.get("eventSlug")),
            token_id=to_text(data.get("tokenId")),
            side=_enum(Side, data.get("side"), Side.BUY),
            entry_price=to_number(data.get("entryPrice")),
            size=to_number(data.get("size")),
            entry_timestamp=to_number(data.get("entryTimestamp")),
            current_price=optional_number(data.get("currentPrice")),
            unrealized_profit=optional_number(data.get("unrealizedProfit")),
            direction=_enum(Direction, data.get("direction"), None),
            filled_orders=parse_filled_orders(data.get("filledOrders")),
        )

    def to_row(self, scope: str) -> dict[str, Any]:
        blob = None
        if self.filled_orders is not None:
            blob = json.dumps([o.to_dict() for o in self.filled_orders])
        return {
            "id": self.id,
            "scope": scope,
            "event_slug": self.event_slug,
            "token_id": self.token_id,
            "side": self.side.value,
            "entry_price": store_number(self.entry_price),
            "size": store_number(self.size),
            "entry_timestamp": store_number(self.entry_timestamp),
            "current_price": store_number(self.current_price),
            "unrealized_profit": store_number(self.unrealized_profit),
            "direction": self.direction.value if self.direction else None,
            "filled_orders": blob,
        }

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Position:
        return cls(
            id=str(row["id"]),
            event_slug=to_text(row.get("event_slug")),
            token_id=to_text(row.get("token_id")),
            side=_enum(Side, row.get("side"), Side.BUY),
            entry_price=read_number(row.get("entry_price")),
            size=read_number(row.get("size")),
            entry_timestamp=read_number(row.get("entry_timestamp")),
            current_price=optional_number(row.get("current_price")),
            unrealized_profit=optional_number(row.get("unrealized_profit")),
            direction=_enum(Direction, row.get("direction"), None),
            filled_orders=parse_filled_orders(row.get("filled_orders")),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "eventSlug": self.event_slug,
            "tokenId": self.token_id,
            "side": self.side.value,
            "entryPrice": store_number(self.entry_price),
            "size": store_number(self.size),
            "entryTimestamp": store_number(_timestamp(self.entry_timestamp)),
        }
        if self.current_price is not None:
            out["currentPrice"] = store_number(self.current_price)
        if self.unrealized_profit is not None:
            out["unrealizedProfit"] = store_number(self.unrealized_profit)
        if self.direction is not None:
            out["direction"] = self.direction.value
        if self.filled_orders is not None:
            out["filledOrders"] = [o.to_dict() for o in self.filled_orders]
        return out


@dataclass
class EventStateSnapshot:
    """Last known thresholds per event slug."""
    price_to_beat: dict[str, float] = field(default_factory=dict)
    last_price: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"priceToBeat": dict(self.price_to_beat), "lastPrice": dict(self.last_price)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EventStateSnapshot:
        return cls(
            price_to_beat={str(k): float(v) for k, v in (data.get("priceToBeat") or {}).items()},
            last_price={str(k): float(v) for k, v in (data.get("lastPrice") or {}).items()},
        )
