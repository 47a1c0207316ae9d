"""
Service settings, read from the environment and an optional .env file.
Each concern gets its own BaseSettings class; AppSettings composes them
in a model_validator so a single AppSettings() call reads everything.
"""

from __future__ import annotations

from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    mongodb_uri: str
    db_name: str = "electrohub"


class RedisSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Optional; without Redis the request rate limiter lets everything through
    redis_uri: Optional[str] = None
    redis_socket_timeout: float = 2.0


class EmailSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    zepto_api_token: str = ""
    zepto_from_email: str = "noreply@electrohub.store"
    zepto_from_name: str = "ElectroHub"


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production


class SentrySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1
    sentry_profile_sample_rate: float = 0.05


class VerificationSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    code_length: int = 6
    code_ttl_seconds: int = 600  # 10 minutes
    token_ttl_seconds: int = 900  # correlation token handed out on success

    # Code request limits
    ip_hourly_limit: int = 10
    ip_burst_limit: int = 3
    ip_burst_window_minutes: int = 10
    email_hourly_limit: int = 3

    # Verify endpoint limit, per client IP
    verify_requests_per_minute: int = 10

    # Empty list accepts any domain
    allowed_email_domains: list[str] = ["gmail.com"]


class AdminSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Unset keys reject every admin request
    admin_cleanup_key: str = ""
    admin_analytics_key: str = ""


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Core
    secret_key: str = ""
    env: str = "development"
    app_url: str = "https://electrohub.store"
    app_name: str = "ElectroHub"

    cors_origins: list[str] = ["*"]

    # Set DOCS_URL to an empty value to hide the OpenAPI UI
    docs_url: Optional[str] = "/docs"

    # Filled in by _populate_sub_configs
    db: Optional[DatabaseSettings] = None
    redis: Optional[RedisSettings] = None
    email: Optional[EmailSettings] = None
    logging: Optional[LoggingSettings] = None
    sentry: Optional[SentrySettings] = None
    verification: Optional[VerificationSettings] = None
    admin: Optional[AdminSettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        if self.db is None:
            self.db = DatabaseSettings()
        if self.redis is None:
            self.redis = RedisSettings()
        if self.email is None:
            self.email = EmailSettings()
        if self.logging is None:
            self.logging = LoggingSettings()
        if self.sentry is None:
            self.sentry = SentrySettings()
        if self.verification is None:
            self.verification = VerificationSettings()
        if self.admin is None:
            self.admin = AdminSettings()

        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"
