from functools import lru_cache
from typing import Any, List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_CORS = ["http://localhost:3000", "http://localhost:5173"]


def _parse_cors_origins(v: Any) -> List[str]:
    try:
        if v is None or v == "":
            return _DEFAULT_CORS.copy()
        if isinstance(v, list):
            return [x for x in v if isinstance(x, str) and x.strip()]
        s = str(v).strip()
        if not s:
            return _DEFAULT_CORS.copy()
        if s.startswith("["):
            import json
            out = json.loads(s)
            return [x for x in out if isinstance(x, str) and x.strip()] or _DEFAULT_CORS.copy()
        return [x.strip() for x in s.split(",") if x.strip()] or _DEFAULT_CORS.copy()
    except ValueError:
        return _DEFAULT_CORS.copy()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # App
    env: str = Field(default="development", description="ENV")
    debug: bool = Field(default=False, description="DEBUG")
    secret_key: str = Field(default="change-me-in-production-min-32-chars")

    # Account store
    account_store_backend: str = Field(default="mongo", alias="ACCOUNT_STORE_BACKEND")
    mongodb_uri: str = Field(default="mongodb://localhost:27017", alias="MONGODB_URI")
    mongodb_db_name: str = Field(default="jikan_gateway", alias="MONGODB_DB_NAME")

    # Sentry
    sentry_dsn: str | None = Field(default=None, alias="SENTRY_DSN")

    # CORS: env as string, exposed as list
    cors_origins_raw: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        alias="CORS_ORIGINS",
        description="Comma-separated or JSON list",
    )

    @property
    def cors_origins(self) -> List[str]:
        return _parse_cors_origins(getattr(self, "cors_origins_raw", None))

    # Upstream (Jikan v4)
    jikan_base_url: str = Field(default="https://api.jikan.moe/v4", alias="JIKAN_BASE_URL")
    upstream_timeout_seconds: float = Field(default=10.0, alias="UPSTREAM_TIMEOUT_SECONDS")
    upstream_user_agent: str = Field(default="jikan-gateway/1.0", alias="UPSTREAM_USER_AGENT")
    upstream_retry_budget: int = Field(default=3, ge=0, alias="UPSTREAM_RETRY_BUDGET")
    upstream_backoff_base_seconds: float = Field(default=1.0, ge=0, alias="UPSTREAM_BACKOFF_BASE_SECONDS")
    upstream_backoff_exponent_base: float = Field(default=2.0, ge=1, alias="UPSTREAM_BACKOFF_EXPONENT_BASE")
    # None disables the per-run deadline
    upstream_deadline_seconds: float | None = Field(default=None, alias="UPSTREAM_DEADLINE_SECONDS")

    # Aggregation caps
    search_page_size: int = Field(default=25, ge=1, le=25, alias="SEARCH_PAGE_SIZE")
    search_max_items: int = Field(default=50, ge=1, alias="SEARCH_MAX_ITEMS")
    top_page_size: int = Field(default=25, ge=1, le=25, alias="TOP_PAGE_SIZE")
    top_max_pages: int = Field(default=4, ge=1, alias="TOP_MAX_PAGES")
    top_max_items: int = Field(default=200, ge=1, alias="TOP_MAX_ITEMS")


@lru_cache
def get_settings() -> Settings:
    return Settings()
