"""路由模块导出集合。"""

from . import auth, health, users

__all__ = ["auth", "health", "users"]
