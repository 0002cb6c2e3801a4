import logging
import time
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, Request

from .core.config import Config, get_config
from .core.events import event_from_request
from .core.middleware import guard, log_requests, global_exception_handler
from .core.responses import create_response_object, to_json_response
from .handlers import create_item, get_account, list_items
from .services.account_store import AccountStore

logger = logging.getLogger(__name__)


def create_app(config: Optional[Config] = None, store: Optional[AccountStore] = None) -> FastAPI:
    """Build the API, wiring the shared handlers behind FastAPI routes."""
    config = config or get_config()
    store = store or AccountStore(config)

    app = FastAPI(title="Request Helpers API")
    app.state.config = config
    app.state.store = store

    @app.middleware("http")
    async def _log_requests(request, call_next):
        return await log_requests(request, call_next)

    @app.exception_handler(Exception)
    async def _global_exception_handler(request, exc):
        return await global_exception_handler(request, exc)

    async def _run(handler, request: Request):
        event = await event_from_request(request)
        envelope = await guard(handler, event, config, store, fallback_config=config)
        return to_json_response(envelope)

    @app.get("/items")
    async def items(request: Request):
        """List items using the validated query parameters."""
        return await _run(list_items, request)

    @app.post("/items")
    async def new_item(request: Request):
        return await _run(create_item, request)

    @app.get("/accounts/me")
    async def account(request: Request):
        """Return the caller's user id if they hold a known account."""
        return await _run(get_account, request)

    @app.get("/health")
    async def health_check():
        """Basic health and dependency checks for the API."""
        health_start_time = time.time()

        try:
            config.validate()
            await store.get_objects_async({}, config.users_table, limit=1)

            health_duration = time.time() - health_start_time
            payload = {
                "status": "healthy",
                "service": "reqkit",
                "timestamp": datetime.now().isoformat(),
                "response_time_ms": round(health_duration * 1000, 2)
            }
            return to_json_response(create_response_object(payload, "200_OK", config=config))
        except Exception as e:
            health_duration = time.time() - health_start_time
            logger.error(f"Health check failed: {str(e)} - Duration: {health_duration:.1f}s")
            envelope = create_response_object(None, "500_INTERNAL_SERVER_ERROR", f"unhealthy: {e}", config=config)
            return to_json_response(envelope)

    @app.get("/")
    async def root():
        """Return basic API information."""
        payload = {
            "service": "Request Helpers API",
            "version": "1.0",
            "endpoints": {
                "items": "/items",
                "account": "/accounts/me",
                "health": "/health"
            },
            "timestamp": datetime.now().isoformat(),
        }
        return to_json_response(create_response_object(payload, "200_OK", config=config))

    return app
