from __future__ import annotations

from pathlib import Path
from typing import Any, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_origins(raw: Any) -> List[str]:
    """
    Normalize CORS allow origins from env.

    Supports:
      - list[str] (already parsed)
      - "*"
      - comma-separated string: "https://a.com, https://b.com"
    """
    if raw is None:
        return ["*"]

    if isinstance(raw, list):
        items = [str(x).strip() for x in raw]
        items = [x for x in items if x]
        return items or ["*"]

    s = str(raw).strip()
    if not s or s == "*":
        return ["*"]

    if "," in s:
        parts = [p.strip() for p in s.split(",")]
        parts = [p for p in parts if p]
        return parts or ["*"]

    return [s]


class Settings(BaseSettings):
    """
    Central app settings.

    - Env var names are stable; values are normalized on load
    - A single resolved DB URL is the source of truth for the engine
    - An empty ADMIN_PASSWORD locks every admin endpoint
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # App identity
    env: str = Field(default="local", alias="APP_ENV")
    app_name: str = Field(default="date-poll", alias="APP_NAME")
    app_version: str = Field(default="1.0.0", alias="APP_VERSION")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Server runtime (uvicorn)
    host: str = Field(default="127.0.0.1", alias="HOST")
    port: int = Field(default=8000, alias="PORT")
    reload: bool = Field(default=False, alias="RELOAD")

    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"], alias="CORS_ALLOW_ORIGINS")

    # Preferred: a real SQLAlchemy URL. Falls back to DB_PATH (SQLite file).
    database_url: str = Field(default="", alias="DATABASE_URL")
    db_path: str = Field(default="./data/datepoll.sqlite", alias="DB_PATH")

    # Shared admin secret, sent as the X-Admin-Password header
    admin_password: str = Field(default="", alias="ADMIN_PASSWORD")

    # Calendar day boundaries ("today") are evaluated in this zone
    poll_timezone: str = Field(default="UTC", alias="POLL_TIMEZONE")

    # Bounded retry for transient store failures
    store_retry_attempts: int = Field(default=3, alias="STORE_RETRY_ATTEMPTS")
    store_retry_base_delay: float = Field(default=0.5, alias="STORE_RETRY_BASE_DELAY")

    # -------------------------
    # Validators / normalizers
    # -------------------------

    @field_validator("log_level", mode="before")
    @classmethod
    def _norm_log_level(cls, v: Any) -> str:
        s = ("" if v is None else str(v)).strip().upper()
        return s or "INFO"

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def _norm_cors_allow_origins(cls, v: Any) -> list[str]:
        return _split_origins(v)

    @field_validator("host", mode="before")
    @classmethod
    def _norm_host(cls, v: Any) -> str:
        s = ("" if v is None else str(v)).strip()
        return s or "127.0.0.1"

    @field_validator("database_url", "admin_password", mode="before")
    @classmethod
    def _strip(cls, v: Any) -> str:
        return ("" if v is None else str(v)).strip()

    @field_validator("db_path", mode="before")
    @classmethod
    def _norm_db_path(cls, v: Any) -> str:
        s = ("" if v is None else str(v)).strip()
        return s or "./data/datepoll.sqlite"

    @field_validator("poll_timezone", mode="before")
    @classmethod
    def _norm_poll_timezone(cls, v: Any) -> str:
        s = ("" if v is None else str(v)).strip()
        return s or "UTC"

    @field_validator("store_retry_attempts", mode="after")
    @classmethod
    def _norm_retry_attempts(cls, v: int) -> int:
        # At least one attempt is always made
        return max(1, v)

    @field_validator("store_retry_base_delay", mode="after")
    @classmethod
    def _norm_retry_delay(cls, v: float) -> float:
        return max(0.0, v)

    # -------------------------
    # Derived helpers
    # -------------------------

    @property
    def is_prod(self) -> bool:
        return str(self.env).strip().lower() in ("prod", "production")

    @property
    def resolved_database_url(self) -> str:
        """
        Priority:
        1) DATABASE_URL if provided
        2) Build sqlite:/// URL from DB_PATH

        DB_PATH may be a full sqlite URL or a relative/absolute file path.
        """
        if self.database_url:
            return self.database_url

        path = (self.db_path or "").strip() or "./data/datepoll.sqlite"

        if path.startswith("sqlite:"):
            return path

        p = Path(path)

        if not p.is_absolute():
            return f"sqlite:///./{p.as_posix()}"

        # Absolute path needs 4 slashes after scheme (sqlite:////abs/path)
        return f"sqlite:////{p.as_posix().lstrip('/')}"


settings = Settings()
