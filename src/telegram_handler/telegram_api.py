"""Minimal Telegram Bot API client."""
import logging

import aiohttp

logger = logging.getLogger(__name__)

TELEGRAM_API_BASE = "https://api.telegram.org"


class TelegramApiError(Exception):
    """Telegram API returned a non-OK response."""

    def __init__(self, status_code: int, description: str):
        super().__init__(f"Telegram API error {status_code}: {description}")
        self.status_code = status_code
        self.description = description


async def _post_message(session: aiohttp.ClientSession, url: str, payload: dict) -> dict:
    async with session.post(url, json=payload) as response:
        status = response.status
        try:
            result = await response.json(content_type=None)
        except ValueError:
            raise TelegramApiError(status, "Malformed Telegram API response") from None

    if status == 200 and isinstance(result, dict) and result.get("ok") is True:
        return result

    description = "Unknown error"
    if isinstance(result, dict) and result.get("description"):
        description = result["description"]
    raise TelegramApiError(status, description)


async def _post_with_retry(session: aiohttp.ClientSession, url: str, payload: dict) -> dict:
    try:
        return await _post_message(session, url, payload)
    except TelegramApiError as e:
        if e.status_code >= 500:
            logger.warning("Retrying Telegram API after 5xx")
            return await _post_message(session, url, payload)
        raise


async def send_message(
    bot_token: str,
    chat_id: int,
    text: str,
    timeout: float = 30,
    session: aiohttp.ClientSession | None = None,
) -> dict:
    """
    Send a message via Telegram Bot API.

    Server errors (5xx) are retried once.

    Args:
        bot_token: Telegram bot token
        chat_id: Target chat ID
        text: Message text (Markdown)
        timeout: Total request timeout in seconds
        session: Optional aiohttp session (for testing)

    Returns:
        Parsed Telegram API response

    Raises:
        TelegramApiError: If Telegram rejects the request
        aiohttp.ClientError: On network failures
    """
    url = f"{TELEGRAM_API_BASE}/bot{bot_token}/sendMessage"
    payload = {
        "chat_id": chat_id,
        "text": text,
        "parse_mode": "Markdown",
        "disable_web_page_preview": True,
    }

    # Never log the token, chat ID or text
    logger.info(f"Sending Telegram message (length={len(text)})")

    if session is not None:
        return await _post_with_retry(session, url, payload)

    client_timeout = aiohttp.ClientTimeout(total=timeout)
    async with aiohttp.ClientSession(timeout=client_timeout) as own_session:
        return await _post_with_retry(own_session, url, payload)
