"""全局通用结构。

接口字段统一使用 camelCase 对外输出，内部仍使用 snake_case 属性名。
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class BaseSchema(BaseModel):
    """基础结构，开启对象映射与驼峰别名。"""

    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


class ErrorResponse(BaseSchema):
    """统一错误响应。"""

    error: str = Field(description="人类可读错误信息。")


class MessageResponse(BaseSchema):
    """仅包含提示语的响应。"""

    message: str = Field(description="操作结果提示。")
