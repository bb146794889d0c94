"""用户与本地凭据模型。"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, false
from sqlalchemy.orm import Mapped, mapped_column

from todo_api.models.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    """本地账号，用户名与口令哈希存放在同一张表。"""

    __tablename__ = "users"

    # 自增主键，创建后不可变。
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True, comment="主键 ID。")
    # 登录用户名，区分大小写，全局唯一。
    username: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    # 口令哈希，不存明文。
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    # 最近一次设置口令的时间；历史数据可能为空。
    password_changed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    # 是否强制用户在下次登录前修改密码。
    force_password_reset: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
