"""Task tracker configuration via pydantic-settings."""

from __future__ import annotations

from datetime import tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings


class TrackerSettings(BaseSettings):
    environment: str = "development"
    app_title: str = "Task Tracker"
    log_level: str = "INFO"

    # "sql" talks to a database directly (local dev); "rest" talks to the
    # hosted PostgREST endpoint with the service credential.
    store_backend: str = "sql"
    database_url: str = "sqlite+aiosqlite:///tasks.db"
    echo_sql: bool = False
    store_url: str = ""
    store_service_key: str = ""

    # IANA zone used for "today"; empty means the server's local zone.
    timezone: str = ""

    tenant_header: str = "X-Tenant-Id"
    enforce_tenant_scope: bool = False

    model_config = {"env_prefix": "TASKS_", "env_file": ".env", "extra": "ignore"}

    @property
    def base_dir(self) -> Path:
        return Path(__file__).resolve().parent

    @property
    def templates_dir(self) -> Path:
        return self.base_dir / "templates"

    @property
    def rest_url(self) -> str:
        """Base URL of the REST interface, e.g. ``https://x.example.co/rest/v1``."""
        base = self.store_url.strip().rstrip("/")
        if not base:
            return ""
        if base.endswith("/rest/v1"):
            return base
        return f"{base}/rest/v1"

    @property
    def tzinfo(self) -> tzinfo | None:
        name = self.timezone.strip()
        return ZoneInfo(name) if name else None

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() in {"prod", "production"}


settings = TrackerSettings()
