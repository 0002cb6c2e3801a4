import functools
import inspect
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional

from fastapi import Request
from fastapi.responses import Response

from .config import Config, INTERNAL_SERVER_ERROR, StatusEntry
from .responses import create_response_object, to_json_response


logger = logging.getLogger(__name__)

UNEXPECTED_ERROR_DESCRIPTION = "An unexpected error occurred."
SLOW_REQUEST_SECONDS = 1.0
REQUEST_ID_HEADER = "X-Request-Id"


def _error_envelope(config: Optional[Config]) -> Dict[str, Any]:
    try:
        return create_response_object(None, INTERNAL_SERVER_ERROR, UNEXPECTED_ERROR_DESCRIPTION, config=config)
    except Exception as e:
        logger.error(f"Could not load status table for error response: {str(e)}")
        entry = StatusEntry(500, "Internal Server Error")
        return {
            "statusCode": entry.code,
            "status": entry.message,
            "description": UNEXPECTED_ERROR_DESCRIPTION,
            "body": {"status": entry.message, "description": UNEXPECTED_ERROR_DESCRIPTION},
        }


async def guard(handler: Callable[..., Any], *args: Any, fallback_config: Optional[Config] = None, **kwargs: Any) -> Any:
    """Call a handler, turning any exception it raises into a 500 envelope.

    Works with plain and coroutine functions. The handler's own result is
    returned unchanged. `fallback_config` supplies the status table used for
    the error envelope.
    """
    try:
        result = handler(*args, **kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result
    except Exception as e:
        name = getattr(handler, "__name__", repr(handler))
        logger.error(f"Unhandled exception in {name}: {str(e)} ({type(e).__name__})", exc_info=True)
        return _error_envelope(fallback_config)


def guarded(handler: Callable[..., Any], config: Optional[Config] = None) -> Callable[..., Awaitable[Any]]:
    @functools.wraps(handler)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        return await guard(handler, *args, fallback_config=config, **kwargs)

    return wrapper


async def log_requests(request: Request, call_next: Callable):
    """Tag each response with a request id and log slow or failed requests."""
    start_time = time.time()
    request_id = request.headers.get(REQUEST_ID_HEADER) or f"{int(start_time * 1000)}-{id(request)}"

    try:
        response = await call_next(request)
    except Exception as e:
        process_time = time.time() - start_time
        logger.error(f"[{request_id}] {request.method} {request.url.path} - ERROR: {str(e)} - {process_time:.2f}s")
        raise

    process_time = time.time() - start_time
    response.headers[REQUEST_ID_HEADER] = request_id
    if response.status_code >= 500:
        logger.warning(f"[{request_id}] {request.method} {request.url.path} - {response.status_code} - {process_time:.2f}s")
    elif process_time > SLOW_REQUEST_SECONDS or response.status_code >= 400:
        logger.info(f"[{request_id}] {request.method} {request.url.path} - {response.status_code} - {process_time:.2f}s")
    return response


async def global_exception_handler(request: Request, exc: Exception) -> Response:
    request_id = f"{int(time.time() * 1000)}-{id(request)}"
    logger.error(f"[{request_id}] Unhandled exception in {request.method} {request.url.path}: {str(exc)}", exc_info=True)

    config: Optional[Config] = getattr(request.app.state, "config", None)
    return to_json_response(_error_envelope(config))
