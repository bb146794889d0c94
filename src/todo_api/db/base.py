"""数据库基础模型导出。

仅提供 Base 定义；建表由 todo_api.db.session.init_db 在启动时按需执行。
"""

from todo_api.models.base import Base

__all__ = ["Base"]
