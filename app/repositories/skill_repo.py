# app/repositories/skill_repo.py
import uuid
from typing import List, Optional
from sqlalchemy import func, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.skill import Skill, UserSkill, DEFAULT_SKILL_CATEGORY

class SkillRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_all_skills(self) -> List[Skill]:
        """
        獲取所有技能 (依名稱排序)
        """
        result = await self.db.execute(select(Skill).order_by(Skill.name))
        return result.scalars().all()

    async def get_skill_by_name(self, name: str) -> Optional[Skill]:
        """
        以 trim + 不分大小寫的方式查詢技能
        """
        stmt = select(Skill).where(func.lower(Skill.name) == name.strip().lower())
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def create_skill(self, name: str, category: str = DEFAULT_SKILL_CATEGORY) -> Skill:
        """
        新增技能並 flush (讓唯一性衝突在這裡就浮現)
        """
        skill = Skill(skill_id=str(uuid.uuid4()), name=name.strip(), category=category)
        self.db.add(skill)
        await self.db.flush()
        return skill

    # --- 使用者技能 (UserSkill) ---
    async def get_user_skills(self, user_id: str) -> List[UserSkill]:
        stmt = (
            select(UserSkill)
            .join(Skill, Skill.skill_id == UserSkill.skill_id)
            .where(UserSkill.user_id == user_id)
            .order_by(Skill.name)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def get_user_skill(self, user_id: str, skill_id: str) -> Optional[UserSkill]:
        stmt = select(UserSkill).where(
            UserSkill.user_id == user_id,
            UserSkill.skill_id == skill_id
        ).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def add_user_skill(self, user_id: str, skill_id: str, proficiency: str) -> UserSkill:
        user_skill = UserSkill(
            user_skill_id=str(uuid.uuid4()),
            user_id=user_id,
            skill_id=skill_id,
            proficiency=proficiency
        )
        self.db.add(user_skill)
        await self.db.flush()
        return user_skill

    async def delete_user_skills(self, user_id: str) -> None:
        """
        刪除使用者所有技能 (覆蓋技能組的第一步)
        """
        await self.db.execute(delete(UserSkill).where(UserSkill.user_id == user_id))
        await self.db.flush()

    async def delete_user_skill(self, user_skill: UserSkill) -> None:
        await self.db.delete(user_skill)
        await self.db.flush()
