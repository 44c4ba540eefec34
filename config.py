"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).

Verification and Steam constants (cooldown window, code TTL, achievement
sample size and per-title timeout) live here rather than in the services so
that deployments can tune them without a code change.
"""

from __future__ import annotations

from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    mongodb_uri: str
    db_name: str = "game-accounts"


class JWTSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    jwt_issuer: str = "game-accounts"
    jwt_audience: str = "game-accounts.api"
    access_token_ttl_seconds: int = 2592000

    # RS256 keys (preferred)
    jwt_private_key: str = ""
    jwt_public_key: str = ""

    # HS256 fallback (used when RS256 keys are absent)
    jwt_secret: str = ""

    @property
    def use_rs256(self) -> bool:
        return bool(self.jwt_private_key and self.jwt_public_key)


class EmailSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Empty token → verification codes are written to the log instead of sent
    zepto_api_token: str = ""
    zepto_from_email: str = "no-reply@feedtools.com"
    zepto_from_name: str = "FeedTools"


class VerificationSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    otp_length: int = 6
    otp_ttl_seconds: int = 600
    resend_cooldown_seconds: int = 60
    login_history_limit: int = 10


class SteamSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    steam_api_key: str = ""
    steam_api_base_url: str = "https://api.steampowered.com"
    steam_request_timeout_seconds: float = 5.0
    steam_achievement_timeout_seconds: float = 2.0
    steam_achievement_sample_size: int = 10


class MaintenanceSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # 0 disables the in-process poller; the TTL index is still ensured
    signup_sweep_interval_seconds: int = 60
    default_game_limit: int = 5
    subscription_grant_minutes: int = 15


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production


class SentrySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Core
    env: str = "development"
    app_url: str = "http://localhost:8000"
    app_name: str = "FeedTools"

    cors_origins: list[str] = ["*"]

    # GeoIP city database (carries city, country and timezone)
    geoip_city_db: str = "misc/GeoLite2-City.mmdb"
    # Substituted for loopback callers so geolocation still resolves locally
    geoip_loopback_fallback_ip: str = "82.194.16.0"

    # OpenAPI docs URL (None disables the docs UI in production)
    docs_url: Optional[str] = "/docs"

    # Sub-configs (composed via model_validator below)
    db: Optional[DatabaseSettings] = None
    jwt: Optional[JWTSettings] = None
    email: Optional[EmailSettings] = None
    verification: Optional[VerificationSettings] = None
    steam: Optional[SteamSettings] = None
    maintenance: Optional[MaintenanceSettings] = None
    logging: Optional[LoggingSettings] = None
    sentry: Optional[SentrySettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        # Populate sub-configs from the same env/dotenv source
        if self.db is None:
            self.db = DatabaseSettings()
        if self.jwt is None:
            self.jwt = JWTSettings()
        if self.email is None:
            self.email = EmailSettings()
        if self.verification is None:
            self.verification = VerificationSettings()
        if self.steam is None:
            self.steam = SteamSettings()
        if self.maintenance is None:
            self.maintenance = MaintenanceSettings()
        if self.logging is None:
            self.logging = LoggingSettings()
        if self.sentry is None:
            self.sentry = SentrySettings()

        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"
