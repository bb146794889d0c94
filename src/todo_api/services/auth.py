"""本地账号认证策略。

负责注册、登录、找回密码与修改密码四个流程：

1. 注册：校验长度、检查重名、写入哈希与改密时间，不签发令牌。
2. 登录：先做存量弱哈希检测（命中即落库强制改密标记），再计算密码是否超龄，
   最后校验口令；需要改密时只签发临时令牌。
3. 找回密码：仅凭用户名签发临时令牌。
4. 修改密码：刷新哈希、改密时间并清除强制改密标记，签发新的常规令牌。
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy.exc import IntegrityError

from todo_api.core.config import Settings
from todo_api.core.passwords import PasswordHasher
from todo_api.core.security import TokenService
from todo_api.exceptions import Conflict, InvalidCredentials, NotFound, PasswordResetRequired, ValidationError
from todo_api.models.user import User
from todo_api.services.user_store import UserStore, UserUpdate

logger = logging.getLogger(__name__)

MISSING_CREDENTIALS_MESSAGE = "Username and password are required."
DUPLICATE_USERNAME_MESSAGE = "Username already exists."


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # 部分数据库驱动返回无时区时间，按 UTC 解释。
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class LoginResult:
    """登录成功结果。"""

    user_id: int
    token: str


class AuthService:
    """认证策略引擎。"""

    def __init__(
        self,
        store: UserStore,
        hasher: PasswordHasher,
        tokens: TokenService,
        settings: Settings,
    ) -> None:
        self.store = store
        self.hasher = hasher
        self.tokens = tokens
        self.username_min_length = settings.auth_username_min_length
        self.password_min_length = settings.auth_password_min_length
        self.password_max_age = timedelta(days=settings.auth_password_max_age_days)

    def _password_too_short_message(self) -> str:
        return f"Password must be at least {self.password_min_length} characters long."

    def is_legacy_hash(self, password_hash: str) -> bool:
        """存量哈希短于当前算法输出长度时视为弱凭据。"""
        return len(password_hash) < self.hasher.expected_length

    def is_password_expired(self, user: User, now: datetime | None = None) -> bool:
        """密码超过最长使用天数即视为过期；改密时间缺失的历史记录不判定过期。"""
        if user.password_changed_at is None:
            return False
        current = now or _utc_now()
        return _as_utc(user.password_changed_at) < current - self.password_max_age

    def register(self, username: str | None, password: str | None) -> User:
        """注册本地账号，成功后需单独登录。"""
        if not username or not password:
            raise ValidationError(MISSING_CREDENTIALS_MESSAGE)
        if len(username) < self.username_min_length:
            raise ValidationError(f"Username must be at least {self.username_min_length} characters long.")
        if len(password) < self.password_min_length:
            raise ValidationError(self._password_too_short_message())

        if self.store.exists(username):
            logger.info("registration rejected, username exists username=%s", username)
            raise Conflict(DUPLICATE_USERNAME_MESSAGE)

        try:
            user = self.store.create(
                username=username,
                password_hash=self.hasher.hash(password),
                password_changed_at=_utc_now(),
            )
            self.store.commit()
        except IntegrityError as exc:
            # 并发注册同名用户时由唯一约束兜底。
            self.store.rollback()
            logger.info("registration rejected by unique constraint username=%s", username)
            raise Conflict(DUPLICATE_USERNAME_MESSAGE) from exc

        logger.info("user registered username=%s user_id=%s", username, user.id)
        return user

    def login(self, username: str | None, password: str | None) -> LoginResult:
        """校验口令并签发令牌；需要改密时抛出 PasswordResetRequired。"""
        if not username or not password:
            raise ValidationError(MISSING_CREDENTIALS_MESSAGE)

        user = self.store.get_by_username(username)
        if user is None:
            self.hasher.verify_dummy(password)
            logger.info("login failed, unknown username=%s", username)
            raise InvalidCredentials()

        force_reset = user.force_password_reset
        if not force_reset and self.is_legacy_hash(user.password_hash):
            # 标记单向置位，无论本次口令是否正确都立即落库。
            logger.warning("legacy password hash detected, flagging reset user_id=%s", user.id)
            self.store.update(user.id, UserUpdate(force_password_reset=True))
            self.store.commit()
            force_reset = True

        expired = self.is_password_expired(user)

        if not self.hasher.verify(password, user.password_hash):
            logger.info("login failed, bad password user_id=%s", user.id)
            raise InvalidCredentials()

        if force_reset or expired:
            logger.info(
                "password reset required user_id=%s force_reset=%s expired=%s",
                user.id,
                force_reset,
                expired,
            )
            raise PasswordResetRequired(self.tokens.issue_temporary(user.id))

        logger.info("login succeeded user_id=%s", user.id)
        return LoginResult(user_id=user.id, token=self.tokens.issue_regular(user.id))

    def request_password_reset(self, username: str | None) -> str:
        """仅凭用户名签发临时改密令牌。"""
        if not username:
            raise ValidationError("Username is required.")

        user = self.store.get_by_username(username)
        if user is None:
            raise NotFound("User not found.")

        # TODO: require an out-of-band proof (email or one-time code) before issuing the reset token.
        logger.warning("password reset token issued without identity proof user_id=%s", user.id)
        return self.tokens.issue_temporary(user.id)

    def change_password(self, user_id: int, new_password: str | None) -> str:
        """更新口令并清除强制改密标记，返回新的常规令牌。"""
        if not new_password or len(new_password) < self.password_min_length:
            raise ValidationError(self._password_too_short_message())

        changes = UserUpdate(
            password_hash=self.hasher.hash(new_password),
            password_changed_at=_utc_now(),
            force_password_reset=False,
        )
        if not self.store.update(user_id, changes):
            self.store.rollback()
            raise NotFound("User not found.")
        self.store.commit()

        logger.info("password changed user_id=%s", user_id)
        return self.tokens.issue_regular(user_id)
