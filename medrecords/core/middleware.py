"""
Request logging middleware.

Every HTTP response carries an X-Request-ID (echoed from the caller when
present) and the time spent handling it in X-Process-Time.
"""
import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

# Set up logging
logger = logging.getLogger(__name__)

# Polled by load balancers; logged at debug level only
QUIET_PATHS = {"/health"}

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs one line when a request starts and one when it ends, tagged with the
    request id and, once the access gate has run, the caller's user id.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        request.state.request_id = request_id
        path = request.url.path
        level = logging.DEBUG if path in QUIET_PATHS else logging.INFO

        client_host = request.client.host if request.client else "unknown"
        logger.log(level, f"[{request_id}] {request.method} {path} from {client_host}")
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"[{request_id}] {request.method} {path} raised {type(e).__name__} "
                f"after {time.perf_counter() - started:.4f}s"
            )
            raise

        elapsed = time.perf_counter() - started
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{elapsed:.6f}"

        auth = getattr(request.state, "auth", None)
        if response.status_code >= 500:
            level = logging.ERROR
        elif response.status_code >= 400:
            level = max(level, logging.WARNING)
        logger.log(
            level,
            f"[{request_id}] {request.method} {path} -> {response.status_code} "
            f"(user {auth.user_id if auth else 'anonymous'}, {elapsed:.4f}s)"
        )
        return response


def setup_middlewares(app):
    """
    Set up all custom middlewares for the application.

    Args:
        app: FastAPI application instance
    """
    app.add_middleware(RequestLoggingMiddleware)
