from __future__ import annotations

import logging
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("catms.config")

DEFAULT_EXPORT_ROLES = "System Administrator,Accountant,Billing Staff,Manager"


class Settings(BaseSettings):
    app_env: str = "development"
    secret_key: str | None = None
    jwt_secret: str | None = None
    jwt_alg: str = "HS256"
    report_timezone: str = Field(default="Asia/Colombo", alias="REPORT_TIMEZONE")
    export_max_rows: int = Field(default=5000, alias="EXPORT_MAX_ROWS")
    export_default_roles: str = Field(default=DEFAULT_EXPORT_ROLES, alias="EXPORT_DEFAULT_ROLES")
    api_base_url: str = Field(default="http://localhost:5000", alias="CATMS_API_BASE_URL")
    api_token: str | None = Field(default=None, alias="CATMS_API_TOKEN")
    api_timeout_seconds: float = Field(default=10.0, alias="CATMS_API_TIMEOUT_SECONDS")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("export_max_rows", "api_timeout_seconds", "report_timezone", mode="before")
    @classmethod
    def _coerce_empty_values(cls, value, info):
        if value in {"", None}:
            return cls.model_fields[info.field_name].default
        return value

    @model_validator(mode="after")
    def _fill_secret_key(self):
        if not self.secret_key and self.jwt_secret:
            self.secret_key = self.jwt_secret
        if not self.secret_key:
            self.secret_key = "change-me"
        return self

    @property
    def export_roles(self) -> list[str]:
        return [part.strip() for part in self.export_default_roles.split(",") if part.strip()]


def _is_production(app_env: str) -> bool:
    return app_env.strip().lower() in {"prod", "production"}


def _is_weak_secret(value: str) -> bool:
    lowered = value.lower()
    if len(value) < 32:
        return True
    return lowered in {"change-me", "changeme", "secret", "password", "catms_secret_key"}


def validate_settings(settings: Settings) -> None:
    app_env = settings.app_env.strip().lower()
    production = _is_production(app_env)
    failures: list[str] = []
    warnings: list[str] = []

    if _is_weak_secret(settings.secret_key or ""):
        msg = "SECRET_KEY is missing or too weak (min 32 chars, avoid defaults)"
        if production:
            failures.append(msg)
        else:
            warnings.append(msg)

    try:
        ZoneInfo(settings.report_timezone)
    except (ZoneInfoNotFoundError, ValueError):
        failures.append(f"REPORT_TIMEZONE is not a known timezone: {settings.report_timezone}")

    if settings.export_max_rows < 1:
        failures.append("EXPORT_MAX_ROWS must be at least 1")

    if not settings.export_roles:
        msg = "EXPORT_DEFAULT_ROLES is empty; nobody can export by default"
        if production:
            failures.append(msg)
        else:
            warnings.append(msg)

    if not settings.api_token:
        warnings.append("CATMS_API_TOKEN is not set; CLI exports must pass --input")

    for warning in warnings:
        logger.warning("Config warning: %s", warning)

    if failures:
        raise RuntimeError("Config validation failed: " + "; ".join(failures))


settings = Settings()
