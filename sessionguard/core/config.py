from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Environment-driven configuration for the session guard."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "SessionGuard"
    DATA_DIR: Path = Field(default_factory=lambda: Path(__file__).resolve().parent.parent / "data")
    CREDENTIALS_FILE: Path | None = None

    # One canonical key pair shared by the guard, the tracker and the API client.
    USER_TOKEN_KEY: str = "token"
    ADMIN_TOKEN_KEY: str = "adminToken"

    LOGIN_ROUTE: str = "login"
    ADMIN_LOGIN_ROUTE: str = "admin-login"
    LOGIN_PATH: str = "/login"
    ADMIN_LOGIN_PATH: str = "/admin/login"

    API_BASE_URL: str = ""
    HTTP_TIMEOUT_SECONDS: float = 10.0

    APP_SECRET: str = "dev-insecure-secret-change-me"
    SESSION_COOKIE_NAME: str = "sg_session"
    SESSION_MAX_AGE: int = 60 * 60 * 24 * 30

    LOG_LEVEL: str = "INFO"

    @model_validator(mode="after")
    def _check_token_keys(self) -> "AppSettings":
        if self.USER_TOKEN_KEY == self.ADMIN_TOKEN_KEY:
            raise ValueError("USER_TOKEN_KEY and ADMIN_TOKEN_KEY must differ")
        return self

    @property
    def credentials_file(self) -> Path:
        return self.CREDENTIALS_FILE or self.DATA_DIR / "credentials.json"


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return AppSettings()


settings = get_settings()
