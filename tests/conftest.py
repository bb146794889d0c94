import os
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# 导入应用前替换默认数据库地址，测试不依赖外部 PostgreSQL。
os.environ.setdefault("TODO_DATABASE_URL", "sqlite+pysqlite:///:memory:")

import todo_api.models  # noqa: E402,F401
from todo_api.core.config import Settings, get_settings  # noqa: E402
from todo_api.core.passwords import PasswordHasher  # noqa: E402
from todo_api.core.security import TokenService  # noqa: E402
from todo_api.db.session import get_db  # noqa: E402
from todo_api.main import app  # noqa: E402
from todo_api.db.base import Base  # noqa: E402

TEST_SECRET = "unit-test-secret-key-at-least-32-bytes"
TEST_ITERATIONS = 1000


@pytest.fixture
def settings(monkeypatch: pytest.MonkeyPatch) -> Generator[Settings, None, None]:
    monkeypatch.setenv("TODO_AUTH_JWT_SECRET", TEST_SECRET)
    monkeypatch.setenv("TODO_AUTH_JWT_ALGORITHMS", "HS256")
    monkeypatch.setenv("TODO_AUTH_PASSWORD_HASH_ITERATIONS", str(TEST_ITERATIONS))
    monkeypatch.setenv("TODO_DB_AUTO_CREATE_TABLES", "false")
    monkeypatch.delenv("TODO_AUTH_JWT_ISSUER", raising=False)
    monkeypatch.delenv("TODO_AUTH_JWT_AUDIENCE", raising=False)
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


@pytest.fixture
def hasher(settings: Settings) -> PasswordHasher:
    return PasswordHasher(settings.auth_password_hash_iterations)


@pytest.fixture
def tokens(settings: Settings) -> TokenService:
    return TokenService(settings)


@pytest.fixture
def session_factory() -> Generator[sessionmaker, None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False, class_=Session)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(session_factory: sessionmaker) -> Generator[Session, None, None]:
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def api_client(settings: Settings, session_factory: sessionmaker) -> Generator[TestClient, None, None]:
    def override_get_db() -> Generator[Session, None, None]:
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides.clear()
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
