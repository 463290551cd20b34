"""
Storage backends for the trading-state stores.

Usage:
    from storage import create_backend
    backend = create_backend(load_config())  # raises ConfigurationError when unusable
"""

from __future__ import annotations

from config import Config, supabase_configured
from errors import ConfigurationError
from storage.base import TABLES, TableBackend

NOT_CONFIGURED_MESSAGE = "Database not configured. Set SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY."


def create_backend(cfg: Config) -> TableBackend:
    """Factory: build the backend selected by `cfg.store_backend`."""
    kind = cfg.store_backend.strip().lower()
    if kind == "sqlite":
        from storage.sqlite import SQLiteBackend
        return SQLiteBackend(db_path=cfg.sqlite_db)
    if kind == "supabase":
        if not supabase_configured(cfg):
            raise ConfigurationError(NOT_CONFIGURED_MESSAGE)
        from storage.supabase import SupabaseBackend
        return SupabaseBackend(
            cfg.supabase_url,
            cfg.supabase_service_role_key,
            timeout=cfg.supabase_timeout_sec,
        )
    raise ConfigurationError(f"Unknown store backend: {cfg.store_backend!r}")


__all__ = ["TABLES", "TableBackend", "create_backend", "NOT_CONFIGURED_MESSAGE"]
