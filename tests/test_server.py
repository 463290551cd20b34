"""Tests for api.server — FastAPI resource endpoints."""

from __future__ import annotations

import math

import pytest
from fastapi.testclient import TestClient

from api.dispatch import ResourceDispatcher, resolve_resource
from api.server import create_app
from errors import ConfigurationError, StoreError
from state import EventStateSnapshot, TradingState
from storage import NOT_CONFIGURED_MESSAGE

NOT_FOUND = "Not found. Use /api/data/event-state, strategy-config, trades, or positions"


@pytest.fixture
def client(state: TradingState) -> TestClient:
    return TestClient(create_app(state))


@pytest.fixture
def unconfigured_client() -> TestClient:
    return TestClient(create_app(None))


class FailingBackend:
    """Backend whose every call fails the way an unreachable remote store does."""

    def select(self, table, columns=None, filters=None, order_by=None, descending=False):
        raise StoreError("connection refused")

    def upsert(self, table, rows, on_conflict):
        raise StoreError("connection refused")

    def insert(self, table, rows):
        raise StoreError("connection refused")

    def delete(self, table, filters):
        raise StoreError("connection refused")

    def close(self):
        pass


class TestRouting:
    def test_health(self, client: TestClient) -> None:
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    def test_options_is_empty_200_with_cors(self, client: TestClient) -> None:
        resp = client.options("/api/trades")
        assert resp.status_code == 200
        assert resp.content == b""
        assert resp.headers["access-control-allow-origin"] == "*"
        assert resp.headers["access-control-allow-methods"] == "GET, POST, OPTIONS"
        assert resp.headers["access-control-allow-headers"] == "Content-Type"

    @pytest.mark.parametrize("method", ["put", "delete", "patch"])
    def test_other_methods_405(self, client: TestClient, method: str) -> None:
        resp = client.request(method.upper(), "/api/trades")
        assert resp.status_code == 405
        assert resp.json() == {"error": "Method not allowed"}

    def test_unknown_resource_404(self, client: TestClient) -> None:
        resp = client.get("/api/data/orders")
        assert resp.status_code == 404
        assert resp.json() == {"error": NOT_FOUND}

    def test_method_checked_before_resource(self, client: TestClient) -> None:
        assert client.put("/api/data/orders").status_code == 405

    def test_cors_on_errors(self, client: TestClient) -> None:
        resp = client.get("/api/nothing-here")
        assert resp.headers["access-control-allow-origin"] == "*"

    def test_combined_endpoint_matches_named(self, client: TestClient) -> None:
        client.post("/api/data/trades", json={"scope": "btc", "trade": {"id": "t1"}})
        assert client.get("/api/trades?scope=btc").json() == client.get("/api/data/trades?scope=btc").json()

    def test_nested_alias_path(self, client: TestClient) -> None:
        client.post("/api/event-state", json={"eventSlug": "e", "lastPrice": 1})
        assert client.get("/api/data/api/data/event-state").json()["lastPrice"] == {"e": 1.0}

    @pytest.mark.parametrize("segments,expected", [
        ([], None),
        (["trades"], "trades"),
        (["trades", "extra"], "trades"),
        (["api", "data", "positions"], "positions"),
    ])
    def test_resolve_resource(self, segments, expected) -> None:
        assert resolve_resource(segments) == expected


class TestUnconfigured:
    def test_every_resource_500(self, unconfigured_client: TestClient) -> None:
        for path in ("/api/event-state", "/api/strategy-config", "/api/trades", "/api/positions"):
            resp = unconfigured_client.get(path)
            assert resp.status_code == 500
            assert resp.json() == {"error": NOT_CONFIGURED_MESSAGE}

    def test_checks_precede_configuration(self, unconfigured_client: TestClient) -> None:
        assert unconfigured_client.put("/api/trades").status_code == 405
        assert unconfigured_client.get("/api/bogus").status_code == 404
        assert unconfigured_client.options("/api/trades").status_code == 200

    def test_custom_message(self) -> None:
        client = TestClient(create_app(None, config_error="Unknown store backend: 'mongo'"))
        assert client.get("/api/trades").json() == {"error": "Unknown store backend: 'mongo'"}


class TestEventState:
    def test_merge_scenario(self, client: TestClient) -> None:
        assert client.post("/api/event-state", json={"eventSlug": "btc-1", "priceToBeat": 10, "lastPrice": 5}).json() == {"ok": True}
        client.post("/api/event-state", json={"eventSlug": "btc-1", "lastPrice": 6})

        resp = client.get("/api/data/event-state")
        assert resp.json() == {"priceToBeat": {"btc-1": 10.0}, "lastPrice": {"btc-1": 6.0}}

    def test_slug_required(self, client: TestClient) -> None:
        resp = client.post("/api/event-state", json={"priceToBeat": 10})
        assert resp.status_code == 400
        assert resp.json() == {"error": "eventSlug is required"}

    def test_empty_body_is_empty_object(self, client: TestClient) -> None:
        resp = client.post("/api/event-state", content=b"")
        assert resp.status_code == 400
        assert resp.json() == {"error": "eventSlug is required"}

    @pytest.mark.parametrize("raw", [b"{oops", b"[1, 2]", b"\"text\""])
    def test_invalid_json_400(self, client: TestClient, raw: bytes) -> None:
        resp = client.post("/api/event-state", content=raw, headers={"Content-Type": "application/json"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid JSON body"}


class TestStrategyConfig:
    def test_put_get_by_scope(self, client: TestClient) -> None:
        client.post("/api/strategy-config", json={"scope": "btc", "config": {"entryPrice": 96}})
        client.post("/api/strategy-config", json={"scope": "eth", "config": {"entryPrice": 95}})

        assert client.get("/api/strategy-config?scope=btc").json() == {"config": {"entryPrice": 96}}
        assert client.get("/api/strategy-config?scope=sol").json() == {"config": None}
        assert client.get("/api/strategy-config").json() == {
            "byScope": {"btc": {"entryPrice": 96}, "eth": {"entryPrice": 95}},
        }

    def test_validation(self, client: TestClient) -> None:
        assert client.post("/api/strategy-config", json={"config": {}}).json() == {"error": "scope is required"}
        resp = client.post("/api/strategy-config", json={"scope": "btc"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "config is required"}


class TestTrades:
    def test_status_transition_scenario(self, client: TestClient) -> None:
        trade = {"id": "t1", "side": "BUY", "size": 50, "price": 0.96, "timestamp": 1000, "status": "pending"}
        client.post("/api/trades", json={"scope": "btc", "trade": trade})
        client.post("/api/trades", json={"scope": "btc", "trade": {**trade, "status": "filled", "transactionHash": "0xabc"}})

        trades = client.get("/api/trades?scope=btc").json()["trades"]
        assert len(trades) == 1
        assert trades[0]["status"] == "filled"
        assert trades[0]["transactionHash"] == "0xabc"

    def test_scope_defaults(self, client: TestClient) -> None:
        client.post("/api/trades", json={"trade": {"id": "t1"}})
        assert [t["id"] for t in client.get("/api/trades").json()["trades"]] == ["t1"]
        assert [t["id"] for t in client.get("/api/trades?scope=default").json()["trades"]] == ["t1"]

    def test_missing_id_400(self, client: TestClient) -> None:
        resp = client.post("/api/trades", json={"scope": "btc", "trade": {"price": 1}})
        assert resp.status_code == 400
        assert resp.json() == {"error": "trade with id is required"}

    def test_unparsable_number_renders_null(self, client: TestClient) -> None:
        client.post("/api/trades", json={"scope": "btc", "trade": {"id": "t1", "price": "abc"}})
        assert client.get("/api/trades?scope=btc").json()["trades"][0]["price"] is None


class TestPositions:
    def test_replace_and_clear(self, client: TestClient) -> None:
        client.post("/api/positions", json={"scope": "eth", "positions": [{"id": "a"}, {"id": "b"}]})
        client.post("/api/positions", json={"scope": "eth", "positions": [{"id": "c"}]})
        assert [p["id"] for p in client.get("/api/positions?scope=eth").json()["positions"]] == ["c"]

        assert client.post("/api/positions", json={"scope": "eth", "positions": []}).json() == {"ok": True}
        assert client.get("/api/positions?scope=eth").json() == {"positions": []}

    def test_non_list_rejected(self, client: TestClient) -> None:
        resp = client.post("/api/positions", json={"scope": "eth", "positions": {"id": "a"}})
        assert resp.status_code == 400
        assert resp.json() == {"error": "positions must be a list"}


class TestStoreFailure:
    def test_store_error_is_500_with_message(self) -> None:
        client = TestClient(create_app(TradingState(FailingBackend())))
        resp = client.get("/api/trades?scope=btc")
        assert resp.status_code == 500
        assert resp.json() == {"error": "connection refused"}

    def test_unexpected_error_is_500(self, state: TradingState, monkeypatch) -> None:
        def boom(scope):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(state.trades, "get", boom)
        resp = TestClient(create_app(state)).get("/api/trades")
        assert resp.status_code == 500
        assert resp.json() == {"error": "disk on fire"}
        assert resp.headers["access-control-allow-origin"] == "*"


class TestNonFiniteInput:
    def test_infinite_trade_price_renders_null(self, client: TestClient) -> None:
        for raw in ("Infinity", "inf"):
            client.post("/api/trades", json={"scope": "btc", "trade": {"id": raw, "price": raw}})
        client.post(
            "/api/trades",
            content=b'{"scope": "btc", "trade": {"id": "big", "price": 1e999}}',
            headers={"Content-Type": "application/json"},
        )

        resp = client.get("/api/trades?scope=btc")
        assert resp.status_code == 200
        assert sorted(t["id"] for t in resp.json()["trades"]) == ["Infinity", "big", "inf"]
        assert all(t["price"] is None for t in resp.json()["trades"])

    def test_infinite_event_price_ignored(self, client: TestClient) -> None:
        client.post(
            "/api/event-state",
            content=b'{"eventSlug": "x", "priceToBeat": 1e999, "lastPrice": 4}',
            headers={"Content-Type": "application/json"},
        )
        resp = client.get("/api/event-state")
        assert resp.status_code == 200
        assert resp.json() == {"priceToBeat": {}, "lastPrice": {"x": 4.0}}


class TestRenderFailure:
    def test_unrenderable_result_is_json_500_with_cors(self, state: TradingState, monkeypatch) -> None:
        monkeypatch.setattr(
            state.event_state, "get", lambda: EventStateSnapshot(price_to_beat={"x": math.inf}),
        )
        resp = TestClient(create_app(state)).get("/api/event-state")

        assert resp.status_code == 500
        assert "error" in resp.json()
        assert resp.headers["access-control-allow-origin"] == "*"


class TestDispatcher:
    def test_state_access_without_store_is_configuration_error(self) -> None:
        dispatcher = ResourceDispatcher(None, config_error="no store")
        with pytest.raises(ConfigurationError, match="no store"):
            dispatcher.state
