"""
Request logging middleware.

Every request gets a correlation id (taken from an incoming X-Request-ID
header or generated) that all log lines of the request carry and that is
echoed back in the response headers. Streaming responses are logged when
their headers go out, so the duration covers time-to-first-byte.
"""
import time
import uuid
import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from vibenote.config.settings import get_settings
from .logging_config import request_id_var

logger = logging.getLogger("vibenote.middleware")

REQUEST_ID_HEADER = "X-Request-ID"


def _format_bytes(size: int) -> str:
    if size < 1024:
        return f"{size}B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f}KB"
    return f"{size / (1024 * 1024):.1f}MB"


def _header_int(headers, name: str) -> int:
    try:
        return int(headers.get(name, "0"))
    except (ValueError, TypeError):
        return 0


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs one line per request and one per response."""

    SKIP_PATHS = frozenset({"/health", "/openapi.json", "/docs", "/redoc", "/favicon.ico"})

    def _skip(self, request: Request) -> bool:
        path = request.url.path
        # Blob downloads are fetched by <img> tags on every render
        return path in self.SKIP_PATHS or (request.method == "GET" and path.startswith("/api/storage/"))

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if self._skip(request):
            return await call_next(request)

        req_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        token = request_id_var.set(req_id)

        settings = get_settings()
        method = request.method
        path = request.url.path
        query = str(request.url.query)
        full_path = f"{path}?{query}" if query else path
        client_ip = request.client.host if request.client else "unknown"
        identity = {
            "user_id": request.headers.get(settings.user_id_header, "-"),
            "chat_id": request.headers.get(settings.chat_id_header, "-"),
        }
        req_size = _header_int(request.headers, "content-length")

        logger.info(
            f"→ {method} {full_path} {_format_bytes(req_size)}",
            extra={"method": method, "path": path, "client_ip": client_ip, "request_size": req_size, **identity},
        )
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            duration_ms = round((time.perf_counter() - start_time) * 1000)
            logger.error(
                f"✗ {method} {full_path} {duration_ms}ms: {type(exc).__name__}: {exc}",
                extra={"method": method, "path": path, "duration_ms": duration_ms, "status_code": 500, **identity},
                exc_info=True,
            )
            request_id_var.reset(token)
            raise

        duration_ms = round((time.perf_counter() - start_time) * 1000)
        status = response.status_code
        resp_size = _header_int(response.headers, "content-length")

        if status >= 500:
            log_fn = logger.error
        elif status >= 400:
            log_fn = logger.warning
        else:
            log_fn = logger.info

        dur_str = f"{duration_ms / 1000:.1f}s" if duration_ms >= 1000 else f"{duration_ms}ms"
        log_fn(
            f"← {status} {method} {full_path} {dur_str} {_format_bytes(resp_size)}",
            extra={
                "method": method, "path": path,
                "status_code": status, "duration_ms": duration_ms,
                "response_size": resp_size, "client_ip": client_ip, **identity,
            },
        )

        response.headers[REQUEST_ID_HEADER] = req_id
        request_id_var.reset(token)
        return response
