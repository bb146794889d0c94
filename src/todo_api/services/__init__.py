"""服务层能力导出集合。"""

from todo_api.services.auth import AuthService, LoginResult
from todo_api.services.authorization import AuthorizedUser, Operation, authorize
from todo_api.services.user_store import UserStore, UserUpdate

__all__ = [
    "AuthService",
    "AuthorizedUser",
    "LoginResult",
    "Operation",
    "UserStore",
    "UserUpdate",
    "authorize",
]
