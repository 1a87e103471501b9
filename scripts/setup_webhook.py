#!/usr/bin/env python3
"""Script to set up Telegram webhook."""
import argparse
import os
import sys

import requests

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from common.secrets import (  # noqa: E402
    SecretNotFoundError,
    SecretsManagerStore,
    TelegramSecrets,
    parse_secret_payload,
)


def load_secrets(secret_arn: str) -> TelegramSecrets:
    """Read the bot token and webhook secret from Secrets Manager."""
    payload = SecretsManagerStore().get_secret_string(secret_arn)
    if not payload:
        raise SecretNotFoundError("SecretString is empty")
    return parse_secret_payload(payload)


def setup_webhook(bot_token: str, webhook_url: str, secret_token: str) -> bool:
    """
    Set up Telegram webhook.

    Args:
        bot_token: Telegram Bot API token
        webhook_url: URL for webhook (API Gateway endpoint)
        secret_token: Secret token for webhook verification

    Returns:
        True if successful, False otherwise
    """
    api_url = f"https://api.telegram.org/bot{bot_token}/setWebhook"

    payload = {
        "url": webhook_url,
        "secret_token": secret_token,
        "allowed_updates": ["message"],  # Only receive message updates
    }

    print(f"Setting webhook to: {webhook_url}")

    response = requests.post(api_url, json=payload, timeout=30)
    result = response.json()

    if result.get("ok"):
        print("Webhook set successfully!")
        return True
    else:
        print(f"Failed to set webhook: {result.get('description', 'unknown error')}")
        return False


def get_webhook_info(bot_token: str) -> dict:
    """Get current webhook info."""
    api_url = f"https://api.telegram.org/bot{bot_token}/getWebhookInfo"
    response = requests.get(api_url, timeout=30)
    return response.json()


def delete_webhook(bot_token: str) -> bool:
    """Delete current webhook."""
    api_url = f"https://api.telegram.org/bot{bot_token}/deleteWebhook"
    response = requests.post(api_url, timeout=30)
    result = response.json()

    if result.get("ok"):
        print("Webhook deleted successfully!")
        return True
    else:
        print(f"Failed to delete webhook: {result.get('description', 'unknown error')}")
        return False


def main():
    parser = argparse.ArgumentParser(description="Manage Telegram Bot Webhook")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--token", help="Telegram Bot Token")
    source.add_argument(
        "--secret-arn",
        help="Secrets Manager ARN holding webhookSecret and botToken",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Set webhook
    set_parser = subparsers.add_parser("set", help="Set webhook")
    set_parser.add_argument("--url", required=True, help="Webhook URL")
    set_parser.add_argument(
        "--secret",
        help="Secret token (defaults to webhookSecret when --secret-arn is used)",
    )

    # Get webhook info
    subparsers.add_parser("info", help="Get webhook info")

    # Delete webhook
    subparsers.add_parser("delete", help="Delete webhook")

    args = parser.parse_args()

    secret_token = getattr(args, "secret", None)
    if args.secret_arn:
        secrets = load_secrets(args.secret_arn)
        bot_token = secrets.bot_token
        secret_token = secret_token or secrets.webhook_secret
    else:
        bot_token = args.token

    if args.command == "set":
        if not secret_token:
            parser.error("--secret is required when using --token")
        success = setup_webhook(bot_token, args.url, secret_token)
        sys.exit(0 if success else 1)
    elif args.command == "info":
        info = get_webhook_info(bot_token)
        print("Webhook Info:")
        print(f"  URL: {info.get('result', {}).get('url', 'Not set')}")
        print(f"  Has custom certificate: {info.get('result', {}).get('has_custom_certificate', False)}")
        print(f"  Pending update count: {info.get('result', {}).get('pending_update_count', 0)}")
        if info.get("result", {}).get("last_error_message"):
            print(f"  Last error: {info['result']['last_error_message']}")
    elif args.command == "delete":
        success = delete_webhook(bot_token)
        sys.exit(0 if success else 1)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
