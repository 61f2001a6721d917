"""TraceMiddleware -- 为单任务操作绑定 trace_id

从 /api/tasks/{task_id} 路径中提取 task_id，生成 trace_id 绑定到 structlog contextvars，
使该请求内的任务删除等日志可与下载过程日志关联。
"""

import re

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# ULID：26 位 Crockford Base32
_TASK_PATH_RE = re.compile(r"^/api/tasks/([0-9A-HJKMNP-TV-Z]{26})(?:/|$)")


def trace_id_for(task_id: str) -> str:
    return f"trace-{task_id}"


class TraceMiddleware(BaseHTTPMiddleware):
    """任务级追踪中间件 -- 为任务操作绑定 trace_id"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        match = _TASK_PATH_RE.match(request.url.path)
        if match:
            structlog.contextvars.bind_contextvars(trace_id=trace_id_for(match.group(1)))

        return await call_next(request)
