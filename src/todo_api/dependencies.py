"""请求依赖。

职责:
1. 基于配置对象构造口令哈希、令牌与认证服务。
2. 从 Authorization 头提取 Bearer 令牌并按操作授权。
"""

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from todo_api.core.config import Settings, get_settings
from todo_api.core.passwords import PasswordHasher
from todo_api.core.security import TokenService, extract_bearer_token
from todo_api.db.session import get_db
from todo_api.services.auth import AuthService
from todo_api.services.authorization import AuthorizedUser, Operation, authorize
from todo_api.services.user_store import UserStore

bearer_scheme = HTTPBearer(auto_error=False)


def get_password_hasher(settings: Settings = Depends(get_settings)) -> PasswordHasher:
    return PasswordHasher(settings.auth_password_hash_iterations)


def get_token_service(settings: Settings = Depends(get_settings)) -> TokenService:
    return TokenService(settings)


def get_user_store(db: Session = Depends(get_db)) -> UserStore:
    return UserStore(db)


def get_auth_service(
    store: UserStore = Depends(get_user_store),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_settings),
) -> AuthService:
    """组装认证服务。"""
    return AuthService(store, hasher, tokens, settings)


def require_operation(operation: Operation):
    """按操作做路由级令牌授权。"""

    def _dep(
        credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
        tokens: TokenService = Depends(get_token_service),
    ) -> AuthorizedUser:
        authorization = None
        if credentials is not None and credentials.credentials:
            authorization = f"{credentials.scheme} {credentials.credentials}"
        token = extract_bearer_token(authorization)
        return authorize(token, operation, tokens)

    return _dep
