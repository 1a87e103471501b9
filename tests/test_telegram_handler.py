"""Tests for the Telegram webhook Lambda handler."""
import asyncio
import json
from unittest import mock

import pytest
from botocore.exceptions import ClientError

from common.secrets import SecretResolver, SecretsManagerStore
from telegram_handler import handler as webhook
from telegram_handler.telegram_api import TelegramApiError
from tests.helpers import FakeSecretStore

VALID_PAYLOAD = json.dumps({"webhookSecret": "from-sm", "botToken": "from-sm-token"})


def make_event(body, token="local-secret", header="X-Telegram-Bot-Api-Secret-Token"):
    headers = {"Content-Type": "application/json"}
    if token is not None:
        headers[header] = token
    return {
        "httpMethod": "POST",
        "headers": headers,
        "body": body if body is None or isinstance(body, str) else json.dumps(body),
        "requestContext": {"requestId": "req-1", "stage": "prod", "httpMethod": "POST"},
    }


def message_update(text="hi", first_name="Ada"):
    return {
        "update_id": 10,
        "message": {
            "message_id": 1,
            "date": 1700000000,
            "chat": {"id": 555, "type": "private"},
            "from": {"id": 7, "is_bot": False, "first_name": first_name},
            "text": text,
        },
    }


def body_of(response):
    return json.loads(response["body"])


@pytest.fixture
def send_message():
    with mock.patch.object(webhook, "send_message", new=mock.AsyncMock()) as send:
        send.return_value = {"ok": True, "result": {"message_id": 2}}
        yield send


@pytest.mark.asyncio
async def test_replies_to_message(fallback_env, send_message):
    resolver = SecretResolver(store=FakeSecretStore())

    response = await webhook.handle_webhook(make_event(message_update()), resolver)

    assert response["statusCode"] == 200
    assert body_of(response)["message"] == "Webhook processed successfully"
    send_message.assert_awaited_once()
    bot_token, chat_id, text = send_message.await_args.args
    assert bot_token == "local-token"
    assert chat_id == 555
    assert text.startswith("Hello Ada!")
    assert '"body": null' in text
    assert "local-secret" not in text


@pytest.mark.asyncio
async def test_header_lookup_is_case_insensitive(fallback_env, send_message):
    resolver = SecretResolver(store=FakeSecretStore())
    event = make_event(message_update(), header="x-telegram-bot-api-secret-token")

    response = await webhook.handle_webhook(event, resolver)

    assert body_of(response)["message"] == "Webhook processed successfully"


@pytest.mark.asyncio
@pytest.mark.parametrize("token", [None, "wrong-secret"])
async def test_rejects_bad_secret_token(fallback_env, send_message, token):
    resolver = SecretResolver(store=FakeSecretStore())

    response = await webhook.handle_webhook(make_event(message_update(), token=token), resolver)

    assert response["statusCode"] == 401
    assert body_of(response) == {
        "success": False,
        "error": "Unauthorized",
        "timestamp": body_of(response)["timestamp"],
    }
    send_message.assert_not_awaited()


@pytest.mark.asyncio
async def test_production_without_secret_source_returns_500(monkeypatch, send_message):
    monkeypatch.setenv("APP_ENV", "production")
    store = FakeSecretStore()
    resolver = SecretResolver(store=store)

    response = await webhook.handle_webhook(make_event(message_update()), resolver)

    assert response["statusCode"] == 500
    assert body_of(response)["error"] == "Secret not configured"
    assert store.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", ["", "{ not-json"])
async def test_resolution_failures_collapse_to_generic_error(arn_env, send_message, payload):
    resolver = SecretResolver(store=FakeSecretStore(payload=payload))

    response = await webhook.handle_webhook(make_event(message_update()), resolver)

    assert response["statusCode"] == 500
    assert body_of(response)["error"] == "Secret not configured"


@pytest.mark.asyncio
async def test_prefetch_and_resolution_share_one_fetch(arn_env, send_message):
    store = FakeSecretStore(payload=VALID_PAYLOAD)
    resolver = SecretResolver(store=store)

    response = await webhook.handle_webhook(
        make_event(message_update(), token="from-sm"), resolver
    )
    await asyncio.sleep(0)

    assert body_of(response)["message"] == "Webhook processed successfully"
    assert len(store.calls) == 1
    assert send_message.await_args.args[0] == "from-sm-token"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body, expected",
    [
        ("{ nope", "Webhook processed (invalid JSON)"),
        (None, "Webhook processed (invalid JSON)"),
        ({"message": {"chat": {"id": 1}}}, "Webhook processed (invalid structure)"),
        ({"update_id": 3, "message": {"chat": {}}}, "Webhook processed (invalid structure)"),
        ({"update_id": 3, "edited_message": {}}, "Webhook processed (non-message update)"),
    ],
)
async def test_invalid_updates_are_acknowledged(fallback_env, send_message, body, expected):
    resolver = SecretResolver(store=FakeSecretStore())

    response = await webhook.handle_webhook(make_event(body), resolver)

    assert response["statusCode"] == 200
    assert body_of(response)["message"] == expected
    send_message.assert_not_awaited()


@pytest.mark.asyncio
async def test_send_failure_is_acknowledged(fallback_env, send_message):
    send_message.side_effect = TelegramApiError(400, "Bad Request: chat not found")
    resolver = SecretResolver(store=FakeSecretStore())

    response = await webhook.handle_webhook(make_event(message_update()), resolver)

    assert response["statusCode"] == 200
    assert body_of(response)["message"] == "Webhook processed (send failure)"


def test_extract_message_info_defaults():
    info = webhook.extract_message_info({"chat": {"id": 9}, "message_id": 1, "date": 0})

    assert info == {"chat_id": 9, "user_first_name": "User", "text": "[Non-text message]"}


def test_sanitize_event_drops_body_and_header_values():
    event = make_event(message_update(), token="local-secret")

    sanitized = webhook.sanitize_event_for_echo(event)

    assert sanitized["body"] is None
    assert "X-Telegram-Bot-Api-Secret-Token" in sanitized["headers"]
    assert "local-secret" not in json.dumps(sanitized)
    assert sanitized["requestContext"]["requestId"] == "req-1"


def test_lambda_handler_uses_process_resolver(fallback_env, send_message):
    resolver = SecretResolver(store=FakeSecretStore())

    with mock.patch.object(webhook, "get_resolver", return_value=resolver):
        response = webhook.lambda_handler(make_event(message_update()), None)

    assert response["statusCode"] == 200
    assert body_of(response)["message"] == "Webhook processed successfully"


def test_secret_store_transport_error_is_reported_as_not_configured(arn_env, send_message):
    client = mock.MagicMock()
    client.get_secret_value.side_effect = ClientError(
        {"Error": {"Code": "InternalServiceError", "Message": "try again"}},
        "GetSecretValue",
    )
    resolver = SecretResolver(store=SecretsManagerStore(client=client))

    with mock.patch.object(webhook, "get_resolver", return_value=resolver):
        response = webhook.lambda_handler(make_event(message_update()), None)

    assert response["statusCode"] == 500
    assert body_of(response)["error"] == "Secret not configured"
    send_message.assert_not_awaited()
