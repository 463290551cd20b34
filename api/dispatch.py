"""
Resource dispatcher: maps (resource name, method) to a store operation and
shapes the response document.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping

from errors import ConfigurationError, MethodError, NotFoundError, ValidationError
from state import TradingState, normalize_scope
from storage import NOT_CONFIGURED_MESSAGE

RESOURCES = ("event-state", "strategy-config", "trades", "positions")
ALLOWED_METHODS = ("GET", "POST")

OK = {"ok": True}

Handler = Callable[[Any], dict]


def resolve_resource(segments: list[str]) -> str | None:
    """
    Resource name from path segments: ['trades'] for /api/data/trades, or the
    third segment of a full ['api', 'data', 'trades'] path.
    """
    if not segments:
        return None
    return segments[2] if len(segments) >= 3 else segments[0]


class ResourceDispatcher:
    """
    Routes requests to the four stores. `state` is None when the store could
    not be configured; every resource request then fails with
    ConfigurationError instead of partially working.
    """

    def __init__(self, state: TradingState | None, config_error: str | None = None) -> None:
        self._state = state
        self._config_error = config_error or NOT_CONFIGURED_MESSAGE
        self._handlers: dict[tuple[str, str], Handler] = {
            ("event-state", "GET"): self._get_event_state,
            ("event-state", "POST"): self._post_event_state,
            ("strategy-config", "GET"): self._get_strategy_config,
            ("strategy-config", "POST"): self._post_strategy_config,
            ("trades", "GET"): self._get_trades,
            ("trades", "POST"): self._post_trades,
            ("positions", "GET"): self._get_positions,
            ("positions", "POST"): self._post_positions,
        }

    def route(self, resource: str | None, method: str) -> Handler:
        """Handler for the request, checked in order: method, resource, configuration."""
        method = method.upper()
        if method not in ALLOWED_METHODS:
            raise MethodError()
        if resource not in RESOURCES:
            raise NotFoundError("Not found. Use /api/data/event-state, strategy-config, trades, or positions")
        if self._state is None:
            raise ConfigurationError(self._config_error)
        return self._handlers[(resource, method)]

    def dispatch(self, resource: str | None, method: str, payload: Any) -> dict:
        """`payload` is the query mapping for GET and the decoded body for POST."""
        return self.route(resource, method)(payload)

    @property
    def state(self) -> TradingState:
        if self._state is None:
            raise ConfigurationError(self._config_error)
        return self._state

    # ── event-state ──

    def _get_event_state(self, query: Mapping[str, str]) -> dict:
        return self.state.event_state.get().to_dict()

    def _post_event_state(self, body: Mapping[str, Any]) -> dict:
        self.state.event_state.put(body.get("eventSlug"), body)
        return OK

    # ── strategy-config ──

    def _get_strategy_config(self, query: Mapping[str, str]) -> dict:
        scope = query.get("scope")
        if scope:
            return {"config": self.state.strategy_config.get(scope)}
        return {"byScope": self.state.strategy_config.get_all()}

    def _post_strategy_config(self, body: Mapping[str, Any]) -> dict:
        self.state.strategy_config.put(body.get("scope"), body.get("config"))
        return OK

    # ── trades ──

    def _get_trades(self, query: Mapping[str, str]) -> dict:
        trades = self.state.trades.get(normalize_scope(query.get("scope")))
        return {"trades": [t.to_dict() for t in trades]}

    def _post_trades(self, body: Mapping[str, Any]) -> dict:
        self.state.trades.put(normalize_scope(body.get("scope")), body.get("trade"))
        return OK

    # ── positions ──

    def _get_positions(self, query: Mapping[str, str]) -> dict:
        positions = self.state.positions.get(normalize_scope(query.get("scope")))
        return {"positions": [p.to_dict() for p in positions]}

    def _post_positions(self, body: Mapping[str, Any]) -> dict:
        positions = body.get("positions")
        if not isinstance(positions, list):
            raise ValidationError("positions must be a list")
        self.state.positions.put(normalize_scope(body.get("scope")), positions)
        return OK
