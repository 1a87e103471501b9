"""Validation helpers for incoming Telegram webhook payloads."""
import json
from dataclasses import dataclass
from typing import Any


@dataclass
class ParseResult:
    """Outcome of parsing a request body."""

    ok: bool
    value: Any = None
    error: Exception | None = None


def safe_json_parse(text: str | None) -> ParseResult:
    """Parse JSON text without raising."""
    if text is None:
        return ParseResult(ok=False, error=ValueError("Empty body"))
    try:
        return ParseResult(ok=True, value=json.loads(text))
    except (TypeError, ValueError) as e:
        return ParseResult(ok=False, error=e)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def is_telegram_update(data: Any) -> bool:
    """
    Check that data looks like a Telegram Update.

    An update needs an integer update_id. The message is optional, but when
    present it must carry a chat with an integer id.
    """
    if not isinstance(data, dict):
        return False
    if not _is_int(data.get("update_id")):
        return False

    message = data.get("message")
    if message is None:
        return True
    if not isinstance(message, dict):
        return False
    chat = message.get("chat")
    if not isinstance(chat, dict):
        return False
    return _is_int(chat.get("id"))
