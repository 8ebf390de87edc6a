"""
Request logging middleware: assigns a request id, times the request and
logs one line per request.
"""

import contextvars
import logging
import time
from uuid import uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

# Read by RequestIDFilter so every record logged during a request carries its id
request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar('request_id', default='no-request-id')


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for request/response logging."""

    def __init__(self, app, log_requests: bool = True, log_responses: bool = True):
        super().__init__(app)
        self.log_requests = log_requests
        self.log_responses = log_responses

    async def dispatch(self, request: Request, call_next):
        # Honour an upstream request id so traces line up across services
        request_id = request.headers.get("x-request-id") or str(uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)

        start_time = time.perf_counter()

        if self.log_requests:
            logger.info(
                f"Request started: {request.method} {request.url.path}",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "query_params": dict(request.query_params),
                    "client_ip": self._get_client_ip(request),
                },
            )

        try:
            response = await call_next(request)

            process_time = time.perf_counter() - start_time
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Process-Time"] = f"{process_time:.4f}"

            if self.log_responses:
                log_method = logger.warning if response.status_code >= 400 else logger.info
                log_method(
                    f"Request completed: {request.method} {request.url.path} - "
                    f"{response.status_code} ({process_time:.4f}s)",
                    extra={
                        "status_code": response.status_code,
                        "process_time": process_time,
                    },
                )

            return response

        except Exception as exc:
            process_time = time.perf_counter() - start_time
            logger.error(
                f"Request failed: {request.method} {request.url.path} - "
                f"{type(exc).__name__}: {exc} ({process_time:.4f}s)",
                exc_info=True,
            )
            raise
        finally:
            request_id_var.reset(token)

    @staticmethod
    def _get_client_ip(request: Request) -> str:
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
        return request.client.host if request.client else "unknown"
