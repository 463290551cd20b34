"""
HTTP client for the trading-state API. Pure REST over httpx.

Method names match state.TradingState so either can back StatePersister.
"""

from __future__ import annotations

from typing import Any, Iterable

import httpx

from errors import StateError
from state.models import EventStateSnapshot, Position, Trade
from state.scope import DEFAULT_SCOPE

_TIMEOUT = 10.0


class StateApiError(StateError):
    """Non-2xx reply from the state API."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class StateApiClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = _TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout, transport=transport)

    def _request(self, method: str, resource: str, params: dict | None = None, json: Any = None) -> dict:
        resp = self._client.request(method, f"/api/{resource}", params=params, json=json)
        if resp.status_code >= 400:
            try:
                message = resp.json().get("error")
            except (ValueError, AttributeError):
                message = None
            raise StateApiError(message or f"{resource} {method} {resp.status_code}", resp.status_code)
        return resp.json()

    # ── event-state ──

    def get_event_state(self) -> EventStateSnapshot:
        return EventStateSnapshot.from_dict(self._request("GET", "event-state"))

    def save_event_state(
        self,
        event_slug: str,
        price_to_beat: float | None = None,
        last_price: float | None = None,
    ) -> None:
        body: dict[str, Any] = {"eventSlug": event_slug}
        if price_to_beat is not None:
            body["priceToBeat"] = price_to_beat
        if last_price is not None:
            body["lastPrice"] = last_price
        self._request("POST", "event-state", json=body)

    # ── strategy-config ──

    def get_strategy_config(self, scope: str) -> Any:
        return self._request("GET", "strategy-config", params={"scope": scope}).get("config")

    def get_all_strategy_configs(self) -> dict[str, Any]:
        return self._request("GET", "strategy-config").get("byScope") or {}

    def save_strategy_config(self, scope: str, config: Any) -> None:
        self._request("POST", "strategy-config", json={"scope": scope, "config": config})

    # ── trades ──

    def get_trades(self, scope: str = DEFAULT_SCOPE) -> list[Trade]:
        data = self._request("GET", "trades", params={"scope": scope})
        return [Trade.from_payload(t) for t in data.get("trades") or []]

    def save_trade(self, scope: str, trade: Trade | dict) -> None:
        doc = trade.to_dict() if isinstance(trade, Trade) else trade
        self._request("POST", "trades", json={"scope": scope, "trade": doc})

    # ── positions ──

    def get_positions(self, scope: str = DEFAULT_SCOPE) -> list[Position]:
        data = self._request("GET", "positions", params={"scope": scope})
        return [Position.from_payload(p) for p in data.get("positions") or []]

    def save_positions(self, scope: str, positions: Iterable[Position | dict]) -> None:
        docs = [p.to_dict() if isinstance(p, Position) else p for p in positions]
        self._request("POST", "positions", json={"scope": scope, "positions": docs})

    def close(self) -> None:
        self._client.close()
