"""注册、登录与改密请求结构。

字段均为可选，缺失与长度校验由认证服务统一处理并返回 400。
"""

from datetime import datetime

from pydantic import BaseModel, Field

from todo_api.schemas.common import BaseSchema, ErrorResponse


class CredentialsRequest(BaseModel):
    """注册与登录请求。"""

    username: str | None = Field(default=None, max_length=255, description="登录用户名。", examples=["alice1"])
    password: str | None = Field(default=None, description="登录密码。", examples=["password123"])


class PasswordResetRequest(BaseModel):
    """找回密码请求。"""

    username: str | None = Field(default=None, max_length=255, description="登录用户名。", examples=["alice1"])


class ChangePasswordRequest(BaseModel):
    """修改密码请求。"""

    password: str | None = Field(default=None, description="新密码。", examples=["newpassword456"])


class LoginData(BaseSchema):
    """登录结果结构。"""

    token: str = Field(description="常规访问令牌。")


class PasswordResetData(BaseSchema):
    """找回密码结果结构。"""

    temp_token: str = Field(description="仅可用于修改密码的临时令牌。")


class ChangePasswordData(BaseSchema):
    """修改密码结果结构。"""

    message: str = Field(description="操作结果提示。")
    token: str = Field(description="新的常规访问令牌。")


class PasswordResetRequiredResponse(ErrorResponse):
    """需要先修改密码时的登录响应。"""

    password_expired: bool = Field(default=True, description="固定为 true。")
    temp_token: str = Field(description="仅可用于修改密码的临时令牌。")


class ProfileData(BaseSchema):
    """当前账号信息。"""

    id: int = Field(description="用户 ID。")
    username: str = Field(description="登录用户名。")
    password_changed_at: datetime | None = Field(description="最近一次修改密码时间。")
    force_password_reset: bool = Field(description="是否被要求强制修改密码。")
