"""API Gateway proxy response helpers."""
import json
from datetime import datetime, timezone

JSON_HEADERS = {"Content-Type": "application/json"}


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def ok(message: str) -> dict:
    """Build a 200 response with a success message."""
    return {
        "statusCode": 200,
        "headers": dict(JSON_HEADERS),
        "body": json.dumps(
            {"success": True, "message": message, "timestamp": _timestamp()}
        ),
    }


def error(status_code: int, error_message: str) -> dict:
    """Build an error response without internal details."""
    return {
        "statusCode": status_code,
        "headers": dict(JSON_HEADERS),
        "body": json.dumps(
            {"success": False, "error": error_message, "timestamp": _timestamp()}
        ),
    }
