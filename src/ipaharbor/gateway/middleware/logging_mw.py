"""LoggingMiddleware -- 请求级日志

为每个 HTTP 请求生成 request_id，绑定到 structlog contextvars，
并在响应头 X-Request-ID 中返回。
"""

import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from ulid import ULID

# 高频轮询接口只记录 DEBUG 日志
QUIET_PATHS = frozenset({"/health", "/api/progress"})


class LoggingMiddleware(BaseHTTPMiddleware):
    """请求级日志中间件 -- 为每个请求生成 request_id"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = str(ULID())

        # 绑定 request_id 到 structlog context
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        log = structlog.get_logger()
        quiet = request.url.path in QUIET_PATHS
        start = time.monotonic()
        if not quiet:
            await log.ainfo("request_started")

        response = await call_next(request)

        duration_ms = int((time.monotonic() - start) * 1000)
        if quiet:
            await log.adebug("request_completed", status_code=response.status_code, duration_ms=duration_ms)
        else:
            await log.ainfo("request_completed", status_code=response.status_code, duration_ms=duration_ms)

        # 在响应头中返回 request_id
        response.headers["X-Request-ID"] = request_id
        return response
