"""Common shared modules."""
from .config import Config, get_config
from .secrets import SecretResolver, TelegramSecrets, get_resolver

__all__ = ["Config", "SecretResolver", "TelegramSecrets", "get_config", "get_resolver"]
