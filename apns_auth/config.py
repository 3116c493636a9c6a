"""
Central configuration for APNs token authentication.
Uses pydantic-settings to load from environment with sane defaults.
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

# APNs rejects provider tokens older than one hour
APNS_TOKEN_MAX_AGE = 60 * 60

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class Settings(BaseSettings):
    # Provider identity (Apple developer account)
    team_id: str = Field(default="", alias="APNS_TEAM_ID")
    key_id: str = Field(default="", alias="APNS_KEY_ID")

    # Private key sources, checked in this order
    key_path: Optional[str] = Field(default=None, alias="APNS_KEY_PATH")
    private_key: Optional[str] = Field(default=None, alias="APNS_PRIVATE_KEY")
    key_secret: Optional[str] = Field(default=None, alias="APNS_KEY_SECRET")
    project_id: str = Field(default="", alias="GCP_PROJECT")

    # Delivery
    topic: str = Field(default="", alias="APNS_TOPIC")
    host: str = Field(default="https://api.push.apple.com", alias="APNS_HOST")
    request_timeout: float = Field(default=10.0, alias="APNS_REQUEST_TIMEOUT")

    # Token refresh
    token_freshness_seconds: int = Field(default=55 * 60, alias="APNS_TOKEN_FRESHNESS_SECONDS")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @field_validator("token_freshness_seconds")
    @classmethod
    def _check_freshness(cls, value: int) -> int:
        if value <= 0 or value >= APNS_TOKEN_MAX_AGE:
            raise ValueError(
                f"token freshness must be between 1 and {APNS_TOKEN_MAX_AGE - 1} seconds, got {value}"
            )
        return value

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log level must be one of {', '.join(LOG_LEVELS)}, got {value}")
        return level

    class Config:
        populate_by_name = True
        case_sensitive = False


# Single settings instance
settings = Settings()

__all__ = ["settings", "Settings", "APNS_TOKEN_MAX_AGE"]
