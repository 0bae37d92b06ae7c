"""FunilDash — Central Configuration via Pydantic Settings."""

import os
from pydantic_settings import BaseSettings
from typing import Literal, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── Database ──
    database_url: str = ""

    # ── Identity Provider ──
    auth_url: str = ""  # e.g. https://<project>.supabase.co
    auth_api_key: Optional[str] = None
    auth_timeout: float = 10.0

    # ── App ──
    log_level: str = "INFO"
    cors_origins: str = "*"  # Comma-separated

    # ── Dashboard ──
    default_period_days: int = 30
    hierarchy_levels: int = 4  # funil → campanha → conjunto → criativo
    time_series_source: Literal["snapshots", "placeholder"] = "snapshots"

    @property
    def effective_database_url(self) -> str:
        """Return PostgreSQL URL if set, otherwise fall back to SQLite."""
        if self.database_url:
            return self.database_url
        # Vercel has a read-only filesystem; use /tmp for SQLite
        if os.environ.get("VERCEL"):
            return "sqlite:////tmp/funildash.db"
        return "sqlite:///./funildash.db"

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
