#!/usr/bin/env python3
"""
Trading-state API server.

Persists event thresholds, strategy configs, trade logs and position sets per
scope so trading engines survive restarts and page reloads.

Usage:
  uv run python run.py                          # Supabase store from SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY
  uv run python run.py --sqlite state.db        # local SQLite store
  uv run python run.py --port 8080 --log-level DEBUG
"""

from __future__ import annotations

import argparse
import logging
import sys

import uvicorn

from api.server import create_app
from config import load_config
from errors import ConfigurationError
from monitor.logger import setup_logging
from state import TradingState
from storage import create_backend

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Trading-state API server")
    parser.add_argument("--host", default=None, help="Bind address (default: API_HOST)")
    parser.add_argument("--port", type=int, default=None, help="Bind port (default: API_PORT)")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ERROR")
    parser.add_argument("--sqlite", default=None, metavar="PATH", help="Use a local SQLite store at PATH")
    return parser.parse_args(argv)


def build_app(argv: list[str] | None = None):
    """Load config and build the app. Returns (app, host, port)."""
    args = _parse_args(argv)
    overrides = {}
    if args.sqlite:
        overrides = {"store_backend": "sqlite", "sqlite_db": args.sqlite}
    cfg = load_config()
    if overrides:
        cfg = cfg.model_copy(update=overrides)

    setup_logging(args.log_level or cfg.log_level, cfg.json_log_file or None)

    try:
        state = TradingState(create_backend(cfg))
        app = create_app(state)
        logger.info("Store backend: %s", cfg.store_backend if not args.sqlite else f"sqlite ({args.sqlite})")
    except ConfigurationError as e:
        logger.error("Store not configured, every request will fail: %s", e.message)
        app = create_app(None, config_error=e.message)

    return app, args.host or cfg.api_host, args.port or cfg.api_port


def main(argv: list[str] | None = None) -> int:
    app, host, port = build_app(argv)
    logger.info("API: /api/event-state, /api/strategy-config, /api/trades, /api/positions")
    uvicorn.run(app, host=host, port=port, log_level="warning", access_log=False)
    return 0


if __name__ == "__main__":
    sys.exit(main())
