"""Messaging configuration shared by the Identity and Ordering services.

Values are read from environment variables (or a ``.env`` file) by
pydantic-settings, e.g. ``REDIS_URL``, ``USER_VALIDATION_TIMEOUT``.
"""

from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.messaging.user_validation import USER_VALIDATION_QUEUE


class MessagingSettings(BaseSettings):
    """Settings for the user-validation channel and order enrichment."""

    # "inline" delivers validation requests in-process; "redis" goes over the queue
    validation_transport: Literal["inline", "redis"] = "inline"

    redis_url: str = "redis://localhost:6379/0"
    user_validation_queue: str = USER_VALIDATION_QUEUE
    user_validation_timeout: float = Field(default=5.0, gt=0)

    # How long unclaimed replies linger on a reply channel, in seconds
    user_validation_reply_ttl: int = Field(default=60, gt=0)

    # Upper bound on parallel validation calls when enriching order listings
    order_enrichment_concurrency: int = Field(default=8, ge=1)

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


_settings: Optional[MessagingSettings] = None


def get_settings() -> MessagingSettings:
    """Return the process-wide MessagingSettings, loading it on first use."""
    global _settings
    if _settings is None:
        _settings = MessagingSettings()
    return _settings


def set_settings_for_test(**kwargs) -> MessagingSettings:
    """For testing only: replace the MessagingSettings instance."""
    global _settings
    _settings = MessagingSettings(**kwargs)
    return _settings
