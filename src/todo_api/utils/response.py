"""统一响应结构工具。"""

from typing import Any

DEFAULT_ERROR_MESSAGE = "Internal server error."


def message_payload(message: str, **extra: Any) -> dict[str, Any]:
    """构造带提示语的成功响应结构。"""
    return {"message": message, **extra}


def error_payload(message: str, extra: dict[str, Any] | None = None) -> dict[str, Any]:
    """构造统一错误响应结构：``{"error": message, ...extra}``。"""
    payload: dict[str, Any] = {"error": message}
    if extra:
        payload.update(extra)
    return payload
