"""当前账号查询接口。"""

from fastapi import APIRouter, Depends, status

from todo_api.dependencies import get_user_store, require_operation
from todo_api.exceptions import NotFound
from todo_api.schemas.auth import ProfileData
from todo_api.schemas.common import ErrorResponse
from todo_api.services.authorization import AuthorizedUser, Operation
from todo_api.services.user_store import UserStore

router = APIRouter(tags=["users"])


@router.get(
    "/me",
    summary="获取当前账号",
    description="返回当前登录用户资料；临时改密令牌不可访问。",
    status_code=status.HTTP_200_OK,
    response_model=ProfileData,
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def me(
    principal: AuthorizedUser = Depends(require_operation(Operation.READ_PROFILE)),
    store: UserStore = Depends(get_user_store),
):
    """查询当前登录用户。"""
    user = store.get_by_id(principal.user_id)
    if user is None:
        raise NotFound("User not found.")
    return user
