import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base
from app.core.config import settings
from app.core.exceptions import PersistenceTimeout

logger = logging.getLogger(__name__)


class TimedAsyncSession(AsyncSession):
    """
    每一次 execute 都套上 DB_QUERY_TIMEOUT_SECONDS 的時間上限，
    逾時轉成 PersistenceTimeout (504)，與 NotFound / Conflict 區分開來。
    """

    async def execute(self, *args, **kwargs):
        try:
            return await asyncio.wait_for(
                super().execute(*args, **kwargs),
                timeout=settings.DB_QUERY_TIMEOUT_SECONDS,
            )
        except asyncio.TimeoutError:
            logger.error(f"SQL 執行超過 {settings.DB_QUERY_TIMEOUT_SECONDS} 秒，已中止")
            raise PersistenceTimeout()


def _engine_options() -> dict:
    options = {
        "pool_pre_ping": True, # 每次從連線池取連線前，先 PING 一次，確保連線有效
        "echo": settings.DB_ECHO, # 設為 True 會在 console 印出 SQL 語句
    }
    # SQLite (測試用) 不支援連線池大小設定
    if not settings.DATABASE_URL.startswith("sqlite"):
        options["pool_size"] = settings.DB_POOL_SIZE
        options["pool_timeout"] = settings.DB_POOL_TIMEOUT
    return options


# 建立非同步引擎
engine = create_async_engine(settings.DATABASE_URL, **_engine_options())

# 建立非同步 Session
AsyncSessionLocal = sessionmaker(
    bind=engine,
    class_=TimedAsyncSession,
    expire_on_commit=False,
)

# 建立 ORM Model 基底類別
Base = declarative_base()

# (重要) 取得 DB Session 的 Dependency
async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI Dependency: 取得非同步資料庫 session，請求結束一定歸還連線"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


@asynccontextmanager
async def transactional(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    多筆寫入的交易範圍：
    區塊正常結束 -> commit；任何例外 -> rollback 後原樣拋出。
    """
    try:
        yield db
        await db.commit()
    except Exception:
        await db.rollback()
        raise


async def create_all_tables() -> None:
    """(開發用) 依 Model 建立所有資料表"""
    # 確保所有 Model 都已註冊到 Base.metadata
    from app.models import user, freelance_profile, skill, mission, application, portfolio, content  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("資料表檢查/建立完成")
