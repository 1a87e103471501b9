"""Webhook authentication for the Telegram handler."""
import hmac
import logging

logger = logging.getLogger(__name__)

SECRET_TOKEN_HEADER = "x-telegram-bot-api-secret-token"


def get_header(headers: dict | None, name: str) -> str | None:
    """Look up a header by name, ignoring case."""
    if not headers:
        return None
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


def verify_webhook_token(received_token: str | None, expected_token: str) -> bool:
    """
    Verify the Telegram webhook secret token.

    Args:
        received_token: Token from X-Telegram-Bot-Api-Secret-Token header
        expected_token: Webhook secret resolved for this process

    Returns:
        True if tokens match, False otherwise
    """
    if not received_token:
        logger.warning("No webhook token provided in request")
        return False

    is_valid = hmac.compare_digest(received_token.encode(), expected_token.encode())
    if not is_valid:
        logger.warning("Invalid webhook token received")

    return is_valid
