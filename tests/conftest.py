import pytest

from tests.helpers import SECRET_ARN

ENV_VARS = (
    "TELEGRAM_SECRET_ARN",
    "TELEGRAM_WEBHOOK_SECRET",
    "TELEGRAM_BOT_TOKEN",
    "APP_ENV",
    "BROWSER_TARGET_URL",
    "PLAYWRIGHT_SCREENSHOTS_ENABLED",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Start every test without any bot configuration in the environment."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fallback_env(monkeypatch):
    monkeypatch.setenv("TELEGRAM_WEBHOOK_SECRET", "local-secret")
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "local-token")


@pytest.fixture
def arn_env(monkeypatch):
    monkeypatch.setenv("TELEGRAM_SECRET_ARN", SECRET_ARN)
