"""Configuration management via environment variables."""
import os
from dataclasses import dataclass
from functools import lru_cache

DEFAULT_BROWSER_TARGET_URL = "https://booking.roadsurfer.com/en-us/rally/?currency=EUR"


def _env(name: str) -> str | None:
    """Read an environment variable, treating blank values as unset."""
    value = os.environ.get(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class Config:
    """Application configuration from environment variables."""

    # Telegram secrets (ARN in deployed environments, plaintext locally)
    telegram_secret_arn: str | None
    telegram_webhook_secret: str | None
    telegram_bot_token: str | None

    # Runtime
    app_env: str | None
    aws_region: str | None

    # Browser automation
    browser_target_url: str = DEFAULT_BROWSER_TARGET_URL
    screenshots_enabled: bool = True

    @property
    def is_production(self) -> bool:
        return (self.app_env or "").lower() == "production"

    @property
    def has_fallback_secrets(self) -> bool:
        return bool(self.telegram_webhook_secret and self.telegram_bot_token)

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        return cls(
            telegram_secret_arn=_env("TELEGRAM_SECRET_ARN"),
            telegram_webhook_secret=_env("TELEGRAM_WEBHOOK_SECRET"),
            telegram_bot_token=_env("TELEGRAM_BOT_TOKEN"),
            app_env=_env("APP_ENV"),
            aws_region=_env("AWS_REGION"),
            browser_target_url=_env("BROWSER_TARGET_URL") or DEFAULT_BROWSER_TARGET_URL,
            screenshots_enabled=_env("PLAYWRIGHT_SCREENSHOTS_ENABLED") != "false",
        )


@lru_cache(maxsize=1)
def get_config() -> Config:
    """Get cached configuration instance."""
    return Config.from_env()
