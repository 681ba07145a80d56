# app/services/profile_service.py
import logging
from typing import List, Tuple
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import transactional
from app.core.exceptions import AppError, NotFound, Conflict, ValidationError
from app.models.freelance_profile import FreelanceProfile
from app.models.portfolio import PortfolioProject
from app.models.skill import UserSkill
from app.models.user import User
from app.repositories.profile_repo import ProfileRepository
from app.repositories.skill_repo import SkillRepository
from app.repositories.user_repo import UserRepository
from app.schemas.profile_schema import (
    FreelanceProfileUpdate, MyProfileOut, ProfileStatsOut, SkillAdd, SkillEntry,
    PortfolioCreate, PortfolioUpdate
)
from app.services.skill_service import SkillService, normalize_proficiency

logger = logging.getLogger(__name__)


def split_full_name(full_name: str) -> Tuple[str, str]:
    """
    去掉頭尾空白後以單一空格切開：第一段 = first_name，其餘原樣串回 = last_name
    e.g. "Jean Claude Van Damme" -> ("Jean", "Claude Van Damme")
    中間的連續空白不會被合併
    """
    parts = full_name.strip().split(" ")
    return parts[0], " ".join(parts[1:])


class ProfileService:
    def __init__(self, db: AsyncSession):
        self.db = db # Service 需要直接存取 db 以開啟交易 / SAVEPOINT
        self.repo = ProfileRepository(db)
        self.skill_repo = SkillRepository(db)
        self.user_repo = UserRepository(db)
        self.skill_service = SkillService(db)

    async def _get_or_create_profile(self, user_id: str) -> FreelanceProfile:
        profile = await self.repo.get_freelance_profile_by_user_id(user_id)
        if profile is None:
            profile = self.repo.add_freelance_profile(user_id)
            await self.db.flush()
            logger.info(f"為使用者 {user_id} 建立 FreelanceProfile")
        return profile

    async def get_my_profile(self, user_id: str) -> MyProfileOut:
        """
        組合：使用者基本資料 + Profile 統計 + 技能 + 作品集
        """
        user = await self.user_repo.get_user_with_profile(user_id)
        if user is None:
            raise NotFound("使用者不存在")
        return MyProfileOut(
            user=user,
            profile=user.freelance_profile,
            skills=await self.skill_repo.get_user_skills(user_id),
            portfolio=await self.repo.get_portfolio(user_id),
        )

    async def _replace_skills(self, user_id: str, entries: List[SkillEntry]) -> List[str]:
        """
        覆蓋使用者的技能組 (先全部刪除再逐筆新增)。
        每一筆都在自己的 SAVEPOINT 裡：單筆失敗只記錄並略過，其餘照常寫入。
        回傳被略過的技能名稱
        """
        await self.skill_repo.delete_user_skills(user_id)

        added_skill_ids = set()
        skipped = []
        for entry in entries:
            name = (entry.name or "").strip()
            try:
                async with self.db.begin_nested():
                    if not name:
                        raise ValidationError("技能名稱不可為空白")
                    skill_id = await self.skill_service.resolve(name)
                    if skill_id in added_skill_ids:
                        raise Conflict(f"技能重複: {name}")
                    await self.skill_repo.add_user_skill(
                        user_id, skill_id, normalize_proficiency(entry.level)
                    )
                added_skill_ids.add(skill_id)
            except (AppError, SQLAlchemyError) as e:
                logger.warning(f"略過技能 '{name}' (user={user_id}): {e}")
                skipped.append(name)
        return skipped

    async def update_my_profile(self, user: User, data: FreelanceProfileUpdate) -> Tuple[MyProfileOut, List[str]]:
        """
        業務邏輯：更新 Profile (基本資料 + 技能)
        - full_name 拆成 first_name / last_name
        - Profile 不存在就建立 (upsert)
        - 統計欄位不會被修改
        """
        user_id = user.user_id
        first_name, last_name = split_full_name(data.full_name)

        async with transactional(self.db):
            user.first_name = first_name
            user.last_name = last_name
            user.bio = data.bio

            profile = await self._get_or_create_profile(user_id)
            if data.hourly_rate is not None:
                profile.hourly_rate = data.hourly_rate
            if data.availability is not None:
                profile.availability = data.availability
            if data.experience_years is not None:
                profile.experience_years = data.experience_years
            if data.response_time_hours is not None:
                profile.response_time_hours = data.response_time_hours

            skipped = []
            if data.skills:
                skipped = await self._replace_skills(user_id, data.skills)

        logger.info(f"Profile 已更新: user={user_id} 略過技能={len(skipped)}")
        return await self.get_my_profile(user_id), skipped

    async def get_stats(self, user: User) -> ProfileStatsOut:
        profile = await self.repo.get_freelance_profile_by_user_id(user.user_id)
        return ProfileStatsOut(
            completed_missions=(profile.completed_missions or 0) if profile else 0,
            average_rating=float(profile.average_rating or 0) if profile else 0.0,
            total_earnings=float(profile.total_earnings or 0) if profile else 0.0,
            response_time_hours=profile.response_time_hours if profile and profile.response_time_hours is not None else 24,
            pending_applications=await self.repo.count_pending_applications(user.user_id),
            active_missions=await self.repo.count_active_missions(user.user_id),
        )

    # --- 單筆技能 CRUD ---
    async def add_skill(self, user: User, data: SkillAdd) -> UserSkill:
        user_id = user.user_id
        async with transactional(self.db):
            skill_id = await self.skill_service.resolve(data.name)
            if await self.skill_repo.get_user_skill(user_id, skill_id):
                raise Conflict("你已經擁有此技能")
            await self.skill_repo.add_user_skill(user_id, skill_id, normalize_proficiency(data.level))

        logger.info(f"使用者 {user_id} 新增技能 {data.name}")
        return await self.skill_repo.get_user_skill(user_id, skill_id)

    async def update_skill_level(self, user: User, skill_id: str, level: str) -> UserSkill:
        user_id = user.user_id
        user_skill = await self.skill_repo.get_user_skill(user_id, skill_id)
        if not user_skill:
            raise NotFound("你沒有此技能")

        async with transactional(self.db):
            user_skill.proficiency = normalize_proficiency(level)

        return await self.skill_repo.get_user_skill(user_id, skill_id)

    async def remove_skill(self, user: User, skill_id: str) -> None:
        user_skill = await self.skill_repo.get_user_skill(user.user_id, skill_id)
        if not user_skill:
            raise NotFound("你沒有此技能")

        async with transactional(self.db):
            await self.skill_repo.delete_user_skill(user_skill)

    # --- 作品集 CRUD ---
    async def create_portfolio_project(self, user: User, data: PortfolioCreate) -> PortfolioProject:
        user_id = user.user_id
        async with transactional(self.db):
            project = await self.repo.create_portfolio_project(user_id, data.model_dump())
            project_id = project.project_id

        logger.info(f"使用者 {user_id} 新增作品 {project_id}")
        return await self.repo.get_portfolio_project(project_id, user_id)

    async def update_portfolio_project(self, user: User, project_id: str, data: PortfolioUpdate) -> PortfolioProject:
        user_id = user.user_id
        project = await self.repo.get_portfolio_project(project_id, user_id)
        if not project:
            raise NotFound("作品不存在")

        async with transactional(self.db):
            for key, value in data.model_dump(exclude_unset=True).items():
                setattr(project, key, value)

        return await self.repo.get_portfolio_project(project_id, user_id)

    async def delete_portfolio_project(self, user: User, project_id: str) -> None:
        project = await self.repo.get_portfolio_project(project_id, user.user_id)
        if not project:
            raise NotFound("作品不存在")

        async with transactional(self.db):
            await self.repo.delete_portfolio_project(project)
