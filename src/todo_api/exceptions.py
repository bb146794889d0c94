"""业务异常定义与应用异常处理注册。"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from todo_api.utils.response import DEFAULT_ERROR_MESSAGE, error_payload

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """可直接映射为 HTTP 响应的业务异常基类。"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = DEFAULT_ERROR_MESSAGE

    def __init__(self, message: str | None = None, *, extra: dict[str, Any] | None = None) -> None:
        self.message = message or self.default_message
        self.extra = dict(extra or {})
        super().__init__(self.message)


class ValidationError(ApiError):
    """输入缺失或长度不足。"""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request body."


class InvalidCredentials(ApiError):
    """用户名或密码错误（不区分具体是哪一项）。"""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid username or password."


class Unauthorized(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class PasswordResetRequired(ApiError):
    """密码正确但已过期或被标记强制重置，携带临时改密令牌。"""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Password must be reset before logging in."

    def __init__(self, temp_token: str, message: str | None = None) -> None:
        super().__init__(message, extra={"passwordExpired": True, "tempToken": temp_token})
        self.temp_token = temp_token


class Forbidden(ApiError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class NotFound(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found."


class Conflict(ApiError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict."


class InternalError(ApiError):
    """存储或哈希失败，仅对外暴露通用提示。"""


class InvalidToken(Exception):
    """令牌签名非法、已过期或载荷不完整。"""


async def api_error_handler(request: Request, exc: ApiError):
    """将业务异常包装为标准错误结构。"""
    return JSONResponse(status_code=exc.status_code, content=error_payload(exc.message, exc.extra))


async def http_exception_handler(request: Request, exc: HTTPException):
    """将框架协议异常（如 404 路由、405 方法）统一为同一错误结构。"""
    message = exc.detail if isinstance(exc.detail, str) else "Request failed."
    return JSONResponse(
        status_code=exc.status_code,
        content=error_payload(message),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """请求体无法解析或字段类型不符时返回 400。"""
    normalized_errors = [
        {
            "field": ".".join(str(item) for item in err.get("loc", []) if item != "body"),
            "message": err.get("msg"),
            "type": err.get("type"),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_payload("Invalid request body.", {"errors": normalized_errors}),
    )


async def unexpected_exception_handler(request: Request, exc: Exception):
    """处理未捕获异常，避免内部细节泄露。"""
    logger.exception(
        "unhandled error request_id=%s path=%s",
        getattr(request.state, "request_id", None),
        request.url.path,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_payload(DEFAULT_ERROR_MESSAGE),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """集中注册异常处理器。"""
    app.exception_handler(ApiError)(api_error_handler)
    app.exception_handler(HTTPException)(http_exception_handler)
    app.exception_handler(RequestValidationError)(validation_exception_handler)
    app.exception_handler(Exception)(unexpected_exception_handler)
