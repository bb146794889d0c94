"""FastAPI 应用入口点。"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from todo_api.api.router import api_router
from todo_api.core.config import get_settings
from todo_api.db.session import init_db
from todo_api.exceptions import register_exception_handlers
from todo_api.middlewares import register_middlewares

logger = logging.getLogger("todo_api")


def _setup_logging(level: str) -> None:
    """初始化日志输出格式与级别。"""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """启动时按配置建表。"""
    settings = get_settings()
    if settings.db_auto_create_tables:
        init_db()
    logger.info("api started env=%s prefix=%s", settings.app_env, settings.api_prefix)
    yield
    logger.info("api stopped")


def create_app() -> FastAPI:
    """创建并配置 FastAPI 应用实例。"""
    settings = get_settings()
    _setup_logging(settings.log_level)
    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        debug=settings.app_debug,
        lifespan=lifespan,
        description=(
            "待办清单平台账号接口。\n\n"
            "受保护接口通过 `Authorization: Bearer <token>` 认证。\n"
            "临时改密令牌仅可调用 `/change-password`。"
        ),
        openapi_tags=[
            {"name": "health", "description": "服务存活与就绪探针。"},
            {"name": "auth", "description": "注册、登录、找回与修改密码。"},
            {"name": "users", "description": "当前账号信息。"},
        ],
    )

    register_middlewares(app)
    register_exception_handlers(app)
    app.include_router(api_router, prefix=settings.api_prefix)
    return app


app = create_app()
