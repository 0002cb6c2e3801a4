import base64
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from fastapi import Request


@dataclass(frozen=True)
class BodyResult:
    body: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def get_header(event: Mapping[str, Any], name: str) -> Optional[str]:
    """Case-insensitive header lookup on a gateway event."""
    headers = event.get("headers")
    if not isinstance(headers, Mapping):
        return None
    wanted = name.lower()
    for key, value in headers.items():
        if isinstance(key, str) and key.lower() == wanted:
            return value
    return None


def _decode_body(event: Mapping[str, Any]) -> Dict[str, Any]:
    raw = event.get("body")
    if raw is None or raw == "":
        return {}
    if isinstance(raw, dict):
        return raw
    if event.get("isBase64Encoded"):
        raw = base64.b64decode(raw).decode("utf-8")
    parsed = json.loads(raw)
    if not isinstance(parsed, dict):
        raise ValueError(f"body must be a JSON object, got {type(parsed).__name__}")
    return parsed


def extract_post_body(event: Mapping[str, Any]) -> BodyResult:
    """Merge path parameters with the JSON request body (body keys win)."""
    try:
        body = {**(event.get("pathParameters") or {}), **_decode_body(event)}
    except (ValueError, TypeError, UnicodeDecodeError) as e:
        return BodyResult(error=str(e))
    return BodyResult(body=body)


async def event_from_request(request: Request) -> Dict[str, Any]:
    """Build an API Gateway proxy style event from a FastAPI request."""
    raw_body = await request.body()
    return {
        "httpMethod": request.method,
        "path": request.url.path,
        "headers": dict(request.headers),
        "pathParameters": dict(request.path_params) or None,
        "queryStringParameters": dict(request.query_params) or None,
        "body": raw_body.decode("utf-8") if raw_body else None,
        "isBase64Encoded": False,
    }
