"""Request handlers shared by the Lambda entry point and the FastAPI app.

Each handler takes an API Gateway proxy style event and returns a response
envelope. `lambda_handler` routes raw Lambda invocations to them.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Tuple

from .core.auth import eval_user_request_authentic, extract_user_id
from .core.config import Config, get_config
from .core.events import extract_post_body
from .core.middleware import guard
from .core.responses import create_response_object, to_proxy_response
from .core.validation import extract_parameters
from .services.account_store import AccountStore

logger = logging.getLogger(__name__)

ITEM_PARAMS = ["id", "limit", "offset", "status", "sort"]

Envelope = Dict[str, Any]
Handler = Callable[[Mapping[str, Any], Config, AccountStore], Awaitable[Envelope]]


async def list_items(event: Mapping[str, Any], config: Config, store: AccountStore) -> Envelope:
    params = extract_parameters(event, ITEM_PARAMS, config)
    return create_response_object({"params": params}, "200_OK", config=config)


async def create_item(event: Mapping[str, Any], config: Config, store: AccountStore) -> Envelope:
    result = extract_post_body(event)
    if not result.ok:
        logger.warning(f"Could not extract body from request: {result.error}")
    if not result.body:
        return create_response_object(None, "400_BAD_REQUEST", "Request body is required", config=config)
    return create_response_object({"item": result.body}, "201_CREATED", config=config)


async def get_account(event: Mapping[str, Any], config: Config, store: AccountStore) -> Envelope:
    if not await eval_user_request_authentic(event, config, store):
        return create_response_object(None, "401_UNAUTHORIZED", "Unknown or missing account", config=config)
    return create_response_object({"userId": extract_user_id(event, config)}, "200_OK", config=config)


ROUTES: Dict[Tuple[str, str], Handler] = {
    ("GET", "/items"): list_items,
    ("POST", "/items"): create_item,
    ("GET", "/accounts/me"): get_account,
}


async def dispatch(event: Mapping[str, Any], config: Config, store: AccountStore) -> Envelope:
    method = (event.get("httpMethod") or "GET").upper()
    path = event.get("path") or "/"
    handler = ROUTES.get((method, path))
    if handler is None:
        return create_response_object(None, "404_NOT_FOUND", f"No route for {method} {path}", config=config)
    return await handler(event, config, store)


_store: Optional[AccountStore] = None


def _get_store(config: Config) -> AccountStore:
    global _store
    if _store is None:
        _store = AccountStore(config)
    return _store


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """AWS Lambda entrypoint for API Gateway proxy integration."""
    config = get_config()
    envelope = asyncio.run(guard(dispatch, event, config, _get_store(config), fallback_config=config))
    return to_proxy_response(envelope)
