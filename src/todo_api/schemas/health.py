"""健康检查结构。"""

from pydantic import Field

from todo_api.schemas.common import BaseSchema


class HealthStatusData(BaseSchema):
    """探针返回结构。"""

    status: str = Field(description="探针状态。")
