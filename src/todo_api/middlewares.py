"""应用中间件注册。"""

import logging
from time import perf_counter
import uuid

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from todo_api.utils.response import DEFAULT_ERROR_MESSAGE, error_payload

logger = logging.getLogger(__name__)


async def request_id_middleware(request: Request, call_next):
    """注入请求追踪 ID，并通过响应头返回。"""
    request.state.request_id = str(uuid.uuid4())
    request.state.request_started_at = perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        # 未被异常处理器接住的错误在此兜底，保证 500 响应同样携带追踪头。
        logger.exception(
            "unhandled error request_id=%s %s %s",
            request.state.request_id,
            request.method,
            request.url.path,
        )
        response = JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_payload(DEFAULT_ERROR_MESSAGE),
        )
    response.headers["X-Request-Id"] = request.state.request_id
    elapsed = perf_counter() - request.state.request_started_at
    response.headers["X-Process-Time-Ms"] = str(round(elapsed * 1000, 2))
    # 只记录方法、路径与状态码，请求体可能包含口令。
    logger.info(
        "request_id=%s %s %s status=%s elapsed_ms=%.2f",
        request.state.request_id,
        request.method,
        request.url.path,
        response.status_code,
        elapsed * 1000,
    )
    return response


def register_middlewares(app: FastAPI) -> None:
    """集中注册中间件。"""
    app.middleware("http")(request_id_middleware)
