"""Shared test doubles."""
import asyncio

SECRET_ARN = "arn:aws:secretsmanager:us-east-1:123456789012:secret:telegram-abc"


class FakeSecretStore:
    """In-memory stand-in for SecretsManagerStore that records fetches."""

    def __init__(self, payload=None, error=None, gate: asyncio.Event | None = None):
        self.payload = payload
        self.error = error
        self.gate = gate
        self.calls = []

    async def fetch(self, secret_id):
        self.calls.append(secret_id)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.payload
