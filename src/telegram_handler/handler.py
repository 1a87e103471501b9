"""Lambda handler for Telegram webhook."""
import asyncio
import json
import logging

from common.http import error, ok
from common.secrets import SecretResolutionError, SecretResolver, get_resolver

from .auth import SECRET_TOKEN_HEADER, get_header, verify_webhook_token
from .telegram_api import send_message
from .validation import is_telegram_update, safe_json_parse

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def sanitize_event_for_echo(event: dict) -> dict:
    """Describe the invocation without the body or header values."""
    headers = event.get("headers") or {}
    request_context = event.get("requestContext") or {}
    return {
        "httpMethod": event.get("httpMethod"),
        "headers": list(headers.keys()),
        "requestContext": {
            "requestId": request_context.get("requestId"),
            "stage": request_context.get("stage"),
            "httpMethod": request_context.get("httpMethod"),
        },
        # Do NOT echo the body to avoid leaking potentially sensitive data
        "body": None,
    }


def extract_message_info(message: dict) -> dict:
    """Pull the chat ID, sender name and text out of a Telegram message."""
    user = message.get("from") or {}
    return {
        "chat_id": message["chat"]["id"],
        "user_first_name": user.get("first_name") or "User",
        "text": message.get("text") or "[Non-text message]",
    }


def build_reply_text(first_name: str, event: dict) -> str:
    echo = json.dumps(sanitize_event_for_echo(event), indent=2)
    return f"Hello {first_name}! \U0001F44B\n\nAWS Lambda Event Echo:\n```json\n{echo}\n```"


def _log_prefetch_failure(task: asyncio.Future) -> None:
    if task.cancelled():
        return
    if task.exception() is not None:
        # The invocation resolves the secrets again below and handles the failure there
        logger.warning("Failed to prefetch Telegram secrets")


async def handle_webhook(event: dict, resolver: SecretResolver) -> dict:
    """
    Process a Telegram webhook invocation.

    Args:
        event: API Gateway proxy event
        resolver: Secret resolver for the Telegram credentials

    Returns:
        API Gateway response
    """
    # Basic start log without PII
    logger.info("Lambda invoked")

    if resolver.is_production() and not resolver.has_configured_secret_source():
        logger.error("Missing TELEGRAM_SECRET_ARN (or local fallbacks) in production")
        return error(500, "Secret not configured")

    # Warm the cache on cold start; the resolution below joins this fetch
    if resolver.uses_secret_store():
        prefetch = asyncio.ensure_future(resolver.resolve_secrets())
        prefetch.add_done_callback(_log_prefetch_failure)

    try:
        secrets = await resolver.resolve_secrets()
    except SecretResolutionError as e:
        logger.error(f"Telegram secrets unavailable ({e.code})")
        return error(500, "Secret not configured")
    except Exception as e:
        # Store transport failures get the same outward response
        logger.error(f"Failed to read Telegram secrets: {type(e).__name__}")
        return error(500, "Secret not configured")

    headers = event.get("headers") or {}
    if not verify_webhook_token(get_header(headers, SECRET_TOKEN_HEADER), secrets.webhook_secret):
        return error(401, "Unauthorized")

    parsed = safe_json_parse(event.get("body"))
    if not parsed.ok:
        logger.warning("Invalid JSON payload")
        # Validation failures: return 200 to prevent Telegram retries
        return ok("Webhook processed (invalid JSON)")

    update = parsed.value
    if not is_telegram_update(update):
        logger.warning("Invalid webhook structure")
        return ok("Webhook processed (invalid structure)")

    if not update.get("message"):
        logger.info("Non-message update ignored")
        return ok("Webhook processed (non-message update)")

    info = extract_message_info(update["message"])
    reply_text = build_reply_text(info["user_first_name"], event)

    try:
        await send_message(secrets.bot_token, info["chat_id"], reply_text)
    except Exception as e:
        # Network/service failures: log internally but do not leak details
        logger.error(f"Failed to send Telegram message: {type(e).__name__}")
        return ok("Webhook processed (send failure)")

    return ok("Webhook processed successfully")


def lambda_handler(event: dict, context) -> dict:
    """
    AWS Lambda handler for Telegram webhook.

    Args:
        event: API Gateway event
        context: Lambda context

    Returns:
        API Gateway response
    """
    try:
        return asyncio.run(handle_webhook(event, get_resolver()))
    except Exception as e:
        logger.error(f"Error processing webhook: {e}", exc_info=True)
        return error(500, "Internal server error")
