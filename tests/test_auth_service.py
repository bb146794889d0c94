from datetime import datetime, timedelta, timezone

import jwt
import pytest
from sqlalchemy.orm import Session

from todo_api.core.config import Settings
from todo_api.core.passwords import PasswordHasher
from todo_api.core.security import TokenService
from todo_api.exceptions import Conflict, InvalidCredentials, NotFound, PasswordResetRequired, ValidationError
from todo_api.models.user import User
from todo_api.services.auth import AuthService
from todo_api.services.user_store import UserStore, UserUpdate


@pytest.fixture
def auth(db_session: Session, hasher: PasswordHasher, tokens: TokenService, settings: Settings) -> AuthService:
    return AuthService(UserStore(db_session), hasher, tokens, settings)


def _seed_user(db: Session, *, username: str, password_hash: str, changed_days_ago: int = 0, force: bool = False) -> User:
    user = User(
        username=username,
        password_hash=password_hash,
        password_changed_at=datetime.now(timezone.utc) - timedelta(days=changed_days_ago),
        force_password_reset=force,
    )
    db.add(user)
    db.commit()
    return user


def test_user_update_only_includes_provided_fields():
    assert UserUpdate().as_values() == {}
    assert UserUpdate(force_password_reset=False).as_values() == {"force_password_reset": False}


def test_register_persists_hashed_user(auth: AuthService, db_session: Session, hasher: PasswordHasher):
    user = auth.register("alice1", "password123")

    stored = db_session.get(User, user.id)
    assert stored.username == "alice1"
    assert stored.password_hash != "password123"
    assert hasher.verify("password123", stored.password_hash)
    assert stored.password_changed_at is not None
    assert stored.force_password_reset is False


@pytest.mark.parametrize(
    ("username", "password", "message"),
    [
        (None, "password123", "Username and password are required."),
        ("alice1", None, "Username and password are required."),
        ("", "", "Username and password are required."),
        ("test", "password123", "Username must be at least 5 characters long."),
        ("testuser", "pass", "Password must be at least 8 characters long."),
    ],
)
def test_register_validates_input(auth: AuthService, username, password, message):
    with pytest.raises(ValidationError) as exc:
        auth.register(username, password)
    assert exc.value.message == message


def test_register_duplicate_username_conflicts(auth: AuthService):
    auth.register("alice1", "password123")
    with pytest.raises(Conflict) as exc:
        auth.register("alice1", "otherpassword")
    assert exc.value.message == "Username already exists."


def test_register_username_is_case_sensitive(auth: AuthService):
    auth.register("alice1", "password123")
    assert auth.register("Alice1", "password123").id is not None


def test_login_returns_regular_token(auth: AuthService, tokens: TokenService):
    user = auth.register("alice1", "password123")
    result = auth.login("alice1", "password123")
    assert result.user_id == user.id
    claims = tokens.verify(result.token)
    assert claims.user_id == user.id
    assert claims.password_expired is False


def test_login_unknown_user_and_wrong_password_share_error(auth: AuthService):
    auth.register("alice1", "password123")
    with pytest.raises(InvalidCredentials) as unknown:
        auth.login("nobody1", "password123")
    with pytest.raises(InvalidCredentials) as wrong:
        auth.login("alice1", "wrongpassword")
    assert unknown.value.message == wrong.value.message == "Invalid username or password."


def test_login_unknown_user_still_runs_password_verification(
    auth: AuthService, hasher: PasswordHasher, monkeypatch: pytest.MonkeyPatch
):
    calls: list[str] = []
    monkeypatch.setattr(hasher, "verify_dummy", lambda password: calls.append(password))

    with pytest.raises(InvalidCredentials):
        auth.login("nobody1", "password123")
    assert calls == ["password123"]


def test_login_requires_both_fields(auth: AuthService):
    with pytest.raises(ValidationError):
        auth.login("alice1", None)


def test_login_expired_password_requires_reset(auth: AuthService, db_session: Session, hasher: PasswordHasher, tokens: TokenService):
    user = _seed_user(db_session, username="olduser", password_hash=hasher.hash("password123"), changed_days_ago=31)

    with pytest.raises(PasswordResetRequired) as exc:
        auth.login("olduser", "password123")

    claims = tokens.verify(exc.value.temp_token)
    assert claims.user_id == user.id
    assert claims.password_expired is True
    # 超龄只在登录时计算，不落库。
    db_session.expire_all()
    assert db_session.get(User, user.id).force_password_reset is False


def test_login_within_max_age_succeeds(auth: AuthService, db_session: Session, hasher: PasswordHasher):
    _seed_user(db_session, username="recent1", password_hash=hasher.hash("password123"), changed_days_ago=29)
    assert auth.login("recent1", "password123").token


def test_login_flagged_user_requires_reset(auth: AuthService, db_session: Session, hasher: PasswordHasher):
    _seed_user(db_session, username="flagged", password_hash=hasher.hash("password123"), force=True)
    with pytest.raises(PasswordResetRequired):
        auth.login("flagged", "password123")


def test_login_legacy_hash_flags_user_even_when_password_is_correct(auth: AuthService, db_session: Session):
    legacy_hash = PasswordHasher(10).hash("password123")
    user = _seed_user(db_session, username="legacy1", password_hash=legacy_hash)

    with pytest.raises(PasswordResetRequired):
        auth.login("legacy1", "password123")

    db_session.expire_all()
    assert db_session.get(User, user.id).force_password_reset is True


def test_login_legacy_hash_flag_persists_on_wrong_password(auth: AuthService, db_session: Session):
    user = _seed_user(db_session, username="legacy2", password_hash="plaintext-password")

    with pytest.raises(InvalidCredentials):
        auth.login("legacy2", "plaintext-password")

    db_session.expire_all()
    assert db_session.get(User, user.id).force_password_reset is True


def test_request_password_reset_issues_temporary_token(auth: AuthService, tokens: TokenService):
    user = auth.register("alice1", "password123")
    claims = tokens.verify(auth.request_password_reset("alice1"))
    assert claims.user_id == user.id
    assert claims.password_expired is True


def test_request_password_reset_errors(auth: AuthService):
    with pytest.raises(ValidationError) as missing:
        auth.request_password_reset(None)
    assert missing.value.message == "Username is required."
    with pytest.raises(NotFound) as unknown:
        auth.request_password_reset("nobody1")
    assert unknown.value.message == "User not found."


def test_change_password_clears_flag_and_resets_age(
    auth: AuthService, db_session: Session, hasher: PasswordHasher, tokens: TokenService
):
    user = _seed_user(
        db_session,
        username="flagged",
        password_hash=PasswordHasher(10).hash("password123"),
        changed_days_ago=40,
        force=True,
    )

    token = auth.change_password(user.id, "newpassword456")
    assert tokens.verify(token).password_expired is False

    db_session.expire_all()
    stored = db_session.get(User, user.id)
    assert stored.force_password_reset is False
    assert hasher.verify("newpassword456", stored.password_hash)
    assert len(stored.password_hash) == hasher.expected_length
    assert not auth.is_password_expired(stored)

    result = auth.login("flagged", "newpassword456")
    assert jwt.decode(result.token, options={"verify_signature": False})["userId"] == user.id


@pytest.mark.parametrize("password", [None, "", "short"])
def test_change_password_rejects_short_password(auth: AuthService, password):
    user = auth.register("alice1", "password123")
    with pytest.raises(ValidationError) as exc:
        auth.change_password(user.id, password)
    assert exc.value.message == "Password must be at least 8 characters long."


def test_change_password_unknown_user(auth: AuthService):
    with pytest.raises(NotFound):
        auth.change_password(999, "newpassword456")


def test_password_without_change_timestamp_is_not_expired(auth: AuthService):
    user = User(username="nodate1", password_hash="x", password_changed_at=None)
    assert auth.is_password_expired(user) is False


def test_naive_change_timestamp_is_treated_as_utc(auth: AuthService):
    naive = (datetime.now(timezone.utc) - timedelta(days=31)).replace(tzinfo=None)
    user = User(username="naive01", password_hash="x", password_changed_at=naive)
    assert auth.is_password_expired(user) is True
