"""访问令牌签发与校验工具。"""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from jwt import InvalidTokenError

from todo_api.core.config import Settings
from todo_api.exceptions import InvalidToken

USER_ID_CLAIM = "userId"
PASSWORD_EXPIRED_CLAIM = "passwordExpired"


@dataclass(frozen=True)
class TokenClaims:
    """解码后的令牌载荷。"""

    # 令牌所属用户 ID。
    user_id: int
    # 是否为临时改密令牌。
    password_expired: bool
    # 原始声明集，便于下游扩展。
    claims: dict[str, Any]


class TokenService:
    """签发与校验两类 Bearer 令牌：常规令牌（完整访问）与临时令牌（仅允许改密）。"""

    def __init__(self, settings: Settings) -> None:
        self._secret = settings.auth_jwt_secret
        self._algorithms = settings.auth_algorithms
        self._issuer = settings.auth_jwt_issuer
        self._audience = settings.auth_jwt_audience
        self._leeway = settings.auth_jwt_leeway_seconds
        self.regular_ttl = timedelta(seconds=settings.auth_access_token_ttl_seconds)
        self.temporary_ttl = timedelta(seconds=settings.auth_temp_token_ttl_seconds)

    def _encode(self, payload: dict[str, Any], ttl: timedelta) -> str:
        now = datetime.now(timezone.utc)
        claims: dict[str, Any] = {
            **payload,
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
        }
        if self._issuer:
            claims["iss"] = self._issuer
        if self._audience:
            claims["aud"] = self._audience
        return jwt.encode(claims, self._secret, algorithm=self._algorithms[0])

    def issue_regular(self, user_id: int) -> str:
        """签发常规访问令牌。"""
        return self._encode({USER_ID_CLAIM: user_id}, self.regular_ttl)

    def issue_temporary(self, user_id: int) -> str:
        """签发仅能用于修改密码的临时令牌。"""
        return self._encode({USER_ID_CLAIM: user_id, PASSWORD_EXPIRED_CLAIM: True}, self.temporary_ttl)

    def verify(self, token: str) -> TokenClaims:
        """校验签名与有效期并返回载荷，失败时抛出 InvalidToken。"""
        try:
            claims = jwt.decode(
                token,
                key=self._secret,
                algorithms=self._algorithms,
                issuer=self._issuer,
                audience=self._audience,
                leeway=self._leeway,
                options={"require": ["exp", "iat"], "verify_aud": bool(self._audience)},
            )
        except InvalidTokenError as exc:
            raise InvalidToken(str(exc)) from exc

        user_id = claims.get(USER_ID_CLAIM)
        # bool 是 int 的子类，需要单独排除。
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            raise InvalidToken("token payload missing userId")

        return TokenClaims(
            user_id=user_id,
            password_expired=claims.get(PASSWORD_EXPIRED_CLAIM) is True,
            claims=claims,
        )


def extract_bearer_token(authorization: str | None) -> str | None:
    """从 Authorization 头中提取 Bearer token，兼容重复头被逗号拼接的场景。"""
    if not authorization:
        return None
    tokens = re.findall(r"Bearer\s+([^,\s]+)", authorization, flags=re.IGNORECASE)
    for candidate in reversed(tokens):
        token = candidate.strip()
        if token:
            return token
    return None
