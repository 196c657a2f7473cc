from datetime import datetime
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = Field(default="Practice Access Service", alias="APP_NAME")
    database_url: str = Field(alias="DATABASE_URL")
    jwt_secret: str = Field(alias="JWT_SECRET")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    token_ttl_hours: int = Field(default=24, alias="TOKEN_TTL_HOURS")
    super_admin_token_ttl_hours: int = Field(default=8, alias="SUPER_ADMIN_TOKEN_TTL_HOURS")
    device_header: str = Field(default="X-Device-Fingerprint", alias="DEVICE_HEADER")
    allow_legacy_passwords: bool = Field(default=True, alias="ALLOW_LEGACY_PASSWORDS")
    legacy_password_cutoff: datetime | None = Field(default=None, alias="LEGACY_PASSWORD_CUTOFF")
    allow_insecure_http: bool = Field(default=False, alias="ALLOW_INSECURE_HTTP")
    rate_limit_login_per_minute: int = Field(default=10, alias="RATE_LIMIT_LOGIN_PER_MINUTE")
    activity_log_max_limit: int = Field(default=500, alias="ACTIVITY_LOG_MAX_LIMIT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")


@lru_cache
def get_settings() -> Settings:
    return Settings()
