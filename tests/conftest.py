# tests/conftest.py
# 測試共用設定：每個測試一個全新的 in-memory SQLite 資料庫
import os
import tempfile
import uuid

# (重要) 必須在匯入 app 之前設定，Settings 會在匯入時讀取環境變數
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="matrix-uploads-"))

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base, TimedAsyncSession, get_db
from app.core.security import get_password_hash, create_access_token
from app.main import app
from app.models.user import User, UserRoleEnum
from app.models.freelance_profile import FreelanceProfile

TEST_PASSWORD = "secret123"


@pytest.fixture
async def engine():
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # SQLite 預設不檢查外鍵，也不會自己送 BEGIN (SAVEPOINT 需要)
    @event.listens_for(test_engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(test_engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, class_=TimedAsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    """
    API 用的 httpx client；每個請求拿到自己的 session (跟正式環境一樣)
    """
    async def _override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session_factory):
    """
    建立使用者 (自由工作者會一併建立 FreelanceProfile)
    用法：user = await make_user(UserRoleEnum.client, first_name="Alice")
    """
    async def _make_user(role: UserRoleEnum = UserRoleEnum.client, **fields) -> User:
        user_id = str(uuid.uuid4())
        data = {
            "email": f"{role.value}-{user_id[:8]}@example.com",
            "first_name": "Test",
            "last_name": role.value.capitalize(),
            "is_active": True,
        }
        data.update(fields)
        user = User(
            user_id=user_id,
            password_hash=get_password_hash(TEST_PASSWORD),
            role=role,
            **data,
        )
        async with session_factory() as session:
            session.add(user)
            if role == UserRoleEnum.freelance:
                session.add(FreelanceProfile(profile_id=str(uuid.uuid4()), user_id=user_id))
            await session.commit()
        return user

    return _make_user


@pytest.fixture
def auth_headers():
    """產生帶 Bearer Token 的 Header"""
    def _auth_headers(user: User) -> dict:
        token = create_access_token(
            data={"sub": user.email, "user_id": user.user_id, "role": user.role.value}
        )
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
