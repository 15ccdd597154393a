"""
Logging helpers shared by the application entry point, routes and services.

- `RequestLoggingMiddleware`: logs one line per request with status and duration, and tags
  the request with an `X-Request-ID` header.
- `log_application_lifecycle()`: structured startup/shutdown events.
- `log_error_with_context()`: error logging with a context dictionary and traceback.
- `log_performance()`: decorator timing sync or async callables.
"""

import asyncio
from contextvars import ContextVar
import functools
import time
from typing import Any, Callable, Dict, Optional
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from content_cms.managers.logging_manager import get_logger

logger = get_logger(prefix="[REQUEST]")
lifecycle_logger = get_logger(prefix="[LIFECYCLE]")
error_logger = get_logger(prefix="[ERROR]")
perf_logger = get_logger(prefix="[PERFORMANCE]")

request_id_context: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

SLOW_OPERATION_THRESHOLD = 1.0


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs every HTTP request with method, path, status code and duration."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:16]
        token = request_id_context.set(request_id)
        start_time = time.time()
        client_ip = request.client.host if request.client else "unknown"

        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.time() - start_time
            error_logger.error(
                "Unhandled error on %s %s after %.3fs [request_id=%s]: %s",
                request.method,
                request.url.path,
                duration,
                request_id,
                e,
                exc_info=True,
            )
            raise
        finally:
            request_id_context.reset(token)

        duration = time.time() - start_time
        response.headers["X-Request-ID"] = request_id
        log = logger.warning if response.status_code >= 500 else logger.info
        log(
            "%s %s -> %d in %.3fs [ip=%s request_id=%s]",
            request.method,
            request.url.path,
            response.status_code,
            duration,
            client_ip,
            request_id,
        )
        return response


def log_application_lifecycle(event: str, details: Optional[Dict[str, Any]] = None) -> None:
    """Log an application lifecycle event such as `startup_initiated` or `database_connected`."""
    lifecycle_logger.info("Lifecycle event '%s': %s", event, details or {})


def log_error_with_context(error: Exception, context: Optional[Dict[str, Any]] = None) -> None:
    """
    Log an exception together with the operation context it occurred in.

    Args:
        error (Exception): The exception being reported.
        context (dict): Free-form context, e.g. `{"operation": "seed_component_types"}`.
    """
    context = dict(context or {})
    request_id = request_id_context.get()
    if request_id:
        context.setdefault("request_id", request_id)
    error_logger.error(
        "%s: %s | context=%s", type(error).__name__, error, context, exc_info=(type(error), error, error.__traceback__)
    )


def log_performance(operation_name: str, threshold: float = SLOW_OPERATION_THRESHOLD) -> Callable:
    """
    Decorator that logs the duration of the wrapped callable.

    Durations above `threshold` seconds are logged as warnings.
    """

    def decorator(func: Callable) -> Callable:
        def _report(start_time: float) -> None:
            duration = time.time() - start_time
            if duration > threshold:
                perf_logger.warning("%s took %.3fs (slow)", operation_name, duration)
            else:
                perf_logger.debug("%s completed in %.3fs", operation_name, duration)

        if asyncio.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                start_time = time.time()
                try:
                    return await func(*args, **kwargs)
                finally:
                    _report(start_time)

            return async_wrapper

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            start_time = time.time()
            try:
                return func(*args, **kwargs)
            finally:
                _report(start_time)

        return sync_wrapper

    return decorator
