"""Telegram secret resolution backed by AWS Secrets Manager.

The secret bundle (webhook validation secret + bot token) is read from the
secret named by TELEGRAM_SECRET_ARN. For local development, the plaintext
TELEGRAM_WEBHOOK_SECRET and TELEGRAM_BOT_TOKEN variables are used instead.

The resolved bundle is cached for the lifetime of the process (warm Lambda
invocations reuse it), and concurrent callers that arrive while a resolution
is running share that single resolution. Failures are not cached.
"""
import asyncio
import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Callable

import boto3
from botocore.exceptions import ClientError

from .config import Config

logger = logging.getLogger(__name__)


class SecretResolutionError(Exception):
    """Base class for secret resolution failures."""

    code = "SECRET_RESOLUTION_ERROR"


class ConfigError(SecretResolutionError):
    """No secret source configured where one is required (production)."""

    code = "CONFIG_ERROR"


class SecretNotFoundError(SecretResolutionError):
    """The store has no value for the secret, or nothing is configured."""

    code = "SECRET_NOT_FOUND"


class SecretMalformedError(SecretResolutionError):
    """A secret payload was obtained but failed validation."""

    code = "SECRET_MALFORMED"


@dataclass(frozen=True)
class TelegramSecrets:
    """Resolved Telegram credentials."""

    webhook_secret: str
    bot_token: str

    def __repr__(self) -> str:
        return "TelegramSecrets(webhook_secret=***, bot_token=***)"


def _required_string(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise SecretMalformedError(f"{key} missing or empty")
    return value.strip()


def parse_secret_payload(payload: str) -> TelegramSecrets:
    """
    Parse and validate a secret payload.

    Args:
        payload: JSON text of the form {"webhookSecret": ..., "botToken": ...}

    Returns:
        TelegramSecrets with trimmed values

    Raises:
        SecretMalformedError: If the payload is not a JSON object with both fields
    """
    try:
        data = json.loads(payload)
    except (TypeError, ValueError):
        raise SecretMalformedError("Failed to parse secret JSON") from None

    if not isinstance(data, dict):
        raise SecretMalformedError("Secret JSON is not an object")

    return TelegramSecrets(
        webhook_secret=_required_string(data, "webhookSecret"),
        bot_token=_required_string(data, "botToken"),
    )


class SecretsManagerStore:
    """Reads secret strings from AWS Secrets Manager."""

    def __init__(self, client: Any | None = None, region: str | None = None):
        """
        Initialize the store.

        Args:
            client: Optional boto3 Secrets Manager client (for testing)
            region: AWS region (default: AWS_REGION / AWS_DEFAULT_REGION)
        """
        self._client = client or boto3.client(
            "secretsmanager",
            region_name=region
            or os.environ.get("AWS_REGION")
            or os.environ.get("AWS_DEFAULT_REGION"),
        )

    def get_secret_string(self, secret_id: str) -> str | None:
        """Return the SecretString for secret_id, or None if the secret does not exist."""
        try:
            response = self._client.get_secret_value(SecretId=secret_id)
        except ClientError as e:
            if e.response["Error"]["Code"] == "ResourceNotFoundException":
                logger.warning("Secret not found in Secrets Manager")
                return None
            logger.error(f"Failed to read secret: {e.response['Error']['Code']}")
            raise
        return response.get("SecretString")

    async def fetch(self, secret_id: str) -> str | None:
        """Fetch a secret string without blocking the event loop."""
        return await asyncio.to_thread(self.get_secret_string, secret_id)


class SecretResolver:
    """Resolves and caches the Telegram secret bundle for the process."""

    def __init__(
        self,
        store: SecretsManagerStore | None = None,
        config_loader: Callable[[], Config] = Config.from_env,
    ):
        self._store = store
        self._config_loader = config_loader
        self._cached: TelegramSecrets | None = None
        self._in_flight: asyncio.Task | None = None

    @property
    def store(self) -> SecretsManagerStore:
        """Lazy load the Secrets Manager store."""
        if self._store is None:
            self._store = SecretsManagerStore()
        return self._store

    async def resolve_secrets(self) -> TelegramSecrets:
        """
        Resolve the Telegram secrets, fetching them at most once per process.

        Returns:
            TelegramSecrets

        Raises:
            ConfigError: Production with no secret source configured
            SecretNotFoundError: Secret missing, empty, or not configured
            SecretMalformedError: Secret payload failed validation
        """
        if self._cached is not None:
            return self._cached

        if self._in_flight is None:
            task = asyncio.ensure_future(self._resolve())
            task.add_done_callback(self._release_in_flight)
            self._in_flight = task

        # Shield so a cancelled caller does not cancel the shared resolution
        return await asyncio.shield(self._in_flight)

    def _release_in_flight(self, task: asyncio.Task) -> None:
        if self._in_flight is task:
            self._in_flight = None
        # Mark the outcome as retrieved even if every waiter was cancelled
        if not task.cancelled():
            task.exception()

    async def _resolve(self) -> TelegramSecrets:
        try:
            return await self._load_secrets()
        finally:
            # Release the slot before any waiter resumes so the next call starts fresh
            if asyncio.current_task() is self._in_flight:
                self._in_flight = None

    async def _load_secrets(self) -> TelegramSecrets:
        config = self._config_loader()

        if config.telegram_secret_arn:
            logger.info("Fetching Telegram secrets from Secrets Manager")
            payload = await self.store.fetch(config.telegram_secret_arn)
            if not payload:
                raise SecretNotFoundError("SecretString is empty")
            secrets = parse_secret_payload(payload)
            source = "secrets_manager"
        elif config.has_fallback_secrets:
            secrets = TelegramSecrets(
                webhook_secret=config.telegram_webhook_secret,
                bot_token=config.telegram_bot_token,
            )
            source = "environment"
        elif config.is_production:
            raise ConfigError("TELEGRAM_SECRET_ARN is required in production")
        else:
            raise SecretNotFoundError("Telegram secrets not configured")

        # A resolution orphaned by clear_cache() must not repopulate the cache
        if asyncio.current_task() is self._in_flight:
            self._cached = secrets
        logger.info(f"Telegram secrets resolved from {source}")
        return secrets

    async def get_webhook_secret(self) -> str:
        return (await self.resolve_secrets()).webhook_secret

    async def get_bot_token(self) -> str:
        return (await self.resolve_secrets()).bot_token

    def has_configured_secret_source(self) -> bool:
        """Check whether an ARN or both fallback values are configured."""
        config = self._config_loader()
        return bool(config.telegram_secret_arn) or config.has_fallback_secrets

    def uses_secret_store(self) -> bool:
        return bool(self._config_loader().telegram_secret_arn)

    def is_production(self) -> bool:
        return self._config_loader().is_production

    def clear_cache(self) -> None:
        """Forget the cached secrets and any in-flight resolution (tests only)."""
        self._cached = None
        self._in_flight = None


# Global instance (reused across Lambda invocations)
_resolver: SecretResolver | None = None


def get_resolver() -> SecretResolver:
    """Get or create the process-wide resolver."""
    global _resolver
    if _resolver is None:
        _resolver = SecretResolver()
    return _resolver
