"""账号认证接口。"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import SQLAlchemyError

from todo_api.dependencies import get_auth_service, require_operation
from todo_api.exceptions import InternalError
from todo_api.schemas.auth import (
    ChangePasswordData,
    ChangePasswordRequest,
    CredentialsRequest,
    LoginData,
    PasswordResetData,
    PasswordResetRequest,
    PasswordResetRequiredResponse,
)
from todo_api.schemas.common import ErrorResponse, MessageResponse
from todo_api.services.auth import AuthService
from todo_api.services.authorization import AuthorizedUser, Operation
from todo_api.utils.response import message_payload

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


@router.post(
    "/register",
    summary="注册本地账号",
    description="创建用户名密码账号；注册成功不签发令牌，需再调用登录接口。",
    status_code=status.HTTP_201_CREATED,
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def register(payload: CredentialsRequest, auth: AuthService = Depends(get_auth_service)):
    """注册本地账号。"""
    try:
        auth.register(payload.username, payload.password)
    except SQLAlchemyError as exc:
        logger.exception("registration error username=%s", payload.username)
        raise InternalError("Registration failed. Please try again.") from exc
    return message_payload("User registered successfully.")


@router.post(
    "/login",
    summary="本地账号登录",
    description=(
        "校验用户名密码并返回常规访问令牌。"
        "密码超龄或被标记强制修改时返回 401 与仅能用于修改密码的临时令牌。"
    ),
    status_code=status.HTTP_200_OK,
    response_model=LoginData,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": PasswordResetRequiredResponse},
        500: {"model": ErrorResponse},
    },
)
def login(payload: CredentialsRequest, auth: AuthService = Depends(get_auth_service)):
    """登录并签发访问令牌。"""
    try:
        result = auth.login(payload.username, payload.password)
    except SQLAlchemyError as exc:
        logger.exception("login error username=%s", payload.username)
        raise InternalError("Login failed.") from exc
    return {"token": result.token}


@router.post(
    "/request-password-reset",
    summary="申请找回密码",
    description="按用户名签发临时改密令牌（有效期较短，仅可调用修改密码接口）。",
    status_code=status.HTTP_200_OK,
    response_model=PasswordResetData,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def request_password_reset(payload: PasswordResetRequest, auth: AuthService = Depends(get_auth_service)):
    """签发临时改密令牌。"""
    try:
        temp_token = auth.request_password_reset(payload.username)
    except SQLAlchemyError as exc:
        logger.exception("password reset request error username=%s", payload.username)
        raise InternalError("Failed to process password reset request.") from exc
    return {"temp_token": temp_token}


@router.post(
    "/change-password",
    summary="修改密码",
    description="常规令牌与临时改密令牌均可调用；成功后清除强制改密标记并返回新的常规令牌。",
    status_code=status.HTTP_200_OK,
    response_model=ChangePasswordData,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
def change_password(
    payload: ChangePasswordRequest,
    principal: AuthorizedUser = Depends(require_operation(Operation.CHANGE_PASSWORD)),
    auth: AuthService = Depends(get_auth_service),
):
    """修改当前用户密码。"""
    try:
        token = auth.change_password(principal.user_id, payload.password)
    except SQLAlchemyError as exc:
        logger.exception("change password error user_id=%s", principal.user_id)
        raise InternalError("Failed to change password.") from exc
    return message_payload("Password changed successfully.", token=token)
