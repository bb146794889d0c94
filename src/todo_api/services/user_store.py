"""用户凭据存储。

按用户名或 ID 读写 users 表；部分字段更新通过 UserUpdate 描述，
只把显式提供的字段转换为参数化 UPDATE 语句。
"""

from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from todo_api.models.user import User


@dataclass(frozen=True)
class UserUpdate:
    """用户记录的部分更新，值为 None 的字段保持不变。"""

    password_hash: str | None = None
    password_changed_at: datetime | None = None
    force_password_reset: bool | None = None

    def as_values(self) -> dict[str, Any]:
        """返回需要写入的列及取值。"""
        return {item.name: getattr(self, item.name) for item in fields(self) if getattr(self, item.name) is not None}


class UserStore:
    """users 表读写封装，事务由调用方通过 commit/rollback 控制。"""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get_by_username(self, username: str) -> User | None:
        return self.db.execute(select(User).where(User.username == username)).scalar_one_or_none()

    def get_by_id(self, user_id: int) -> User | None:
        return self.db.get(User, user_id)

    def exists(self, username: str) -> bool:
        return self.db.execute(select(User.id).where(User.username == username)).first() is not None

    def create(self, *, username: str, password_hash: str, password_changed_at: datetime) -> User:
        """新增用户并刷新以获取自增主键。"""
        user = User(
            username=username,
            password_hash=password_hash,
            password_changed_at=password_changed_at,
            force_password_reset=False,
        )
        self.db.add(user)
        self.db.flush()
        return user

    def update(self, user_id: int, changes: UserUpdate) -> bool:
        """按 ID 执行部分更新，返回是否命中记录。"""
        values = changes.as_values()
        if not values:
            return self.get_by_id(user_id) is not None
        result = self.db.execute(update(User).where(User.id == user_id).values(**values))
        return result.rowcount > 0

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
