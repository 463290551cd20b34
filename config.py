"""
Configuration loaded from environment variables (and an optional .env file).
"""

from pydantic_settings import BaseSettings
from pydantic import Field


class Config(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "frozen": True, "extra": "ignore"}

    # Store selection: "supabase" (remote PostgREST) or "sqlite" (local file)
    store_backend: str = "supabase"

    # Remote store credentials
    supabase_url: str = ""
    supabase_service_role_key: str = ""
    supabase_timeout_sec: float = Field(default=10.0, gt=0)

    # Local store
    sqlite_db: str = "trading_state.db"

    # HTTP surface
    api_host: str = "0.0.0.0"
    api_port: int = Field(default=3000, ge=1, le=65535)

    # Logging
    log_level: str = "INFO"
    json_log_file: str = ""


def supabase_configured(cfg: Config) -> bool:
    """True when both remote store credentials are present."""
    return bool(cfg.supabase_url and cfg.supabase_service_role_key)


def load_config() -> Config:
    """Load and validate config from environment. Raises on invalid values."""
    return Config()
