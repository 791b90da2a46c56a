from app.core.logging_config import setup_logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
import structlog
import time
import uuid

logger = setup_logging()

REQUEST_ID_HEADER = "X-Request-ID"

# Health endpoints are polled every few seconds; keep them out of the info log
_QUIET_PATHS = {"/ws/v1/health/liveness", "/ws/v1/health/readiness", "/metrics"}


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        """Tag the request with a request_id and log it on the way in and out."""
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        log = logger.debug if request.url.path in _QUIET_PATHS else logger.info
        start_time = time.time()

        log(
            "Incoming Request",
            method=request.method,
            path=request.url.path,
            query_params=dict(request.query_params),
        )

        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Unhandled error", method=request.method, path=request.url.path)
            raise
        finally:
            process_time = time.time() - start_time

        response.headers[REQUEST_ID_HEADER] = request_id
        log(
            "Outgoing Response",
            status_code=response.status_code,
            process_time=f"{process_time:.4f}s",
        )
        return response
