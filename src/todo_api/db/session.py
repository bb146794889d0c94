"""数据库会话管理。"""

import logging
from collections.abc import Generator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from todo_api.core.config import get_settings
from todo_api.db.base import Base

logger = logging.getLogger(__name__)
settings = get_settings()

# 全局数据库引擎，开启连接预检查以减少僵尸连接影响。
engine = create_engine(settings.database_url, future=True, pool_pre_ping=True)
# 统一会话工厂，路由层通过依赖注入获取短生命周期会话。
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, class_=Session)


def get_db() -> Generator[Session, None, None]:
    """为每个请求提供独立数据库会话。"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Engine | None = None) -> None:
    """创建缺失的数据表（CREATE TABLE IF NOT EXISTS 语义，不做结构迁移）。"""
    import todo_api.models  # noqa: F401

    target = bind or engine
    logger.info("initializing database tables")
    Base.metadata.create_all(bind=target, checkfirst=True)
    logger.info("database tables initialized")
