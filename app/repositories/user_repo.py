# app/repositories/user_repo.py
# 負責與使用者相關的資料庫操作
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
from app.models.user import User

class UserRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_email(self, email: str) -> User | None:
        """
        透過 email 查詢使用者 (不分大小寫)
        """
        stmt = select(User).where(User.email == email.strip().lower())
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_user_by_id(self, user_id: str) -> User | None:
        """
        透過 user_id 查詢使用者
        """
        stmt = select(User).where(User.user_id == user_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_user_with_profile(self, user_id: str) -> User | None:
        """
        查詢使用者並預先載入 freelance_profile (避免非同步 lazy load)
        """
        stmt = (
            select(User)
            .where(User.user_id == user_id)
            .options(selectinload(User.freelance_profile))
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    def add_user(self, user: User) -> None:
        """
        將新使用者加入 Session (commit 由 Service 的交易範圍負責)
        """
        self.db.add(user)
