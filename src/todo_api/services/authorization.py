"""受保护操作的令牌授权判定。"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from todo_api.core.security import TokenService
from todo_api.exceptions import Forbidden, InvalidToken, Unauthorized

TEMP_TOKEN_SCOPE_MESSAGE = "Temporary token valid only for password change."


class Operation(StrEnum):
    """需要认证的业务操作。"""

    CHANGE_PASSWORD = "change_password"  # 修改密码，临时令牌唯一可访问的操作。
    READ_PROFILE = "read_profile"  # 查询当前账号信息。


@dataclass(frozen=True)
class AuthorizedUser:
    """通过授权的请求身份。"""

    user_id: int
    # 是否凭临时改密令牌访问。
    password_expired: bool
    claims: dict[str, Any]


def authorize(token: str | None, operation: Operation, tokens: TokenService) -> AuthorizedUser:
    """校验令牌并限制临时令牌只能用于修改密码。"""
    if not token:
        raise Unauthorized()

    try:
        payload = tokens.verify(token)
    except InvalidToken as exc:
        raise Forbidden() from exc

    if payload.password_expired and operation is not Operation.CHANGE_PASSWORD:
        raise Forbidden(TEMP_TOKEN_SCOPE_MESSAGE)

    return AuthorizedUser(
        user_id=payload.user_id,
        password_expired=payload.password_expired,
        claims=payload.claims,
    )
