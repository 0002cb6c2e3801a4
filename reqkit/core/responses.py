import json
from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response

from .config import Config, INTERNAL_SERVER_ERROR, get_config


def create_response_object(
    payload: Any,
    status_name: str = INTERNAL_SERVER_ERROR,
    description: str = "",
    config: Optional[Config] = None,
) -> Dict[str, Any]:
    """Build a response envelope from a symbolic status name.

    Successful (2xx) envelopes carry the payload as body. For any other
    status the payload is discarded and the body repeats status and
    description.
    """
    config = config or get_config()
    entry = config.status(status_name)

    if 200 <= entry.code < 300:
        body = payload
    else:
        body = {"status": entry.message, "description": description}

    return {
        "statusCode": entry.code,
        "status": entry.message,
        "description": description,
        "body": body,
    }


def to_proxy_response(envelope: Dict[str, Any]) -> Dict[str, Any]:
    """Render an envelope as an API Gateway proxy integration result."""
    return {
        "statusCode": envelope["statusCode"],
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(envelope["body"], default=str),
    }


def to_json_response(envelope: Dict[str, Any]) -> Response:
    if envelope["statusCode"] == 204:
        return Response(status_code=204)
    return JSONResponse(status_code=envelope["statusCode"], content=jsonable_encoder(envelope["body"]))
