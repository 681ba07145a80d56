# app/repositories/profile_repo.py
import uuid
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.application import Application
from app.models.freelance_profile import FreelanceProfile
from app.models.mission import Mission
from app.models.portfolio import PortfolioProject

class ProfileRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    # --- 工作者 Profile ---
    async def get_freelance_profile_by_user_id(self, user_id: str) -> Optional[FreelanceProfile]:
        stmt = (
            select(FreelanceProfile)
            .where(FreelanceProfile.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    def add_freelance_profile(self, user_id: str) -> FreelanceProfile:
        """
        建立空白 Profile (統計欄位使用預設值)
        """
        profile = FreelanceProfile(
            profile_id=str(uuid.uuid4()),
            user_id=user_id,
            availability=True,
            experience_years=0,
            response_time_hours=24,
            completed_missions=0,
            average_rating=0,
            total_earnings=0,
        )
        self.db.add(profile)
        return profile

    async def count_pending_applications(self, freelance_id: str) -> int:
        stmt = select(func.count(Application.application_id)).where(
            Application.freelance_id == freelance_id,
            Application.status == 'pending'
        )
        result = await self.db.execute(stmt)
        return result.scalar_one()

    async def count_active_missions(self, freelance_id: str) -> int:
        """指派給此工作者且進行中的任務數"""
        stmt = select(func.count(Mission.mission_id)).where(
            Mission.assigned_freelance_id == freelance_id,
            Mission.status == 'in_progress'
        )
        result = await self.db.execute(stmt)
        return result.scalar_one()

    # --- 作品集 (Portfolio) ---
    async def get_portfolio(self, freelance_id: str, limit: Optional[int] = None) -> List[PortfolioProject]:
        stmt = (
            select(PortfolioProject)
            .where(PortfolioProject.freelance_id == freelance_id)
            .order_by(PortfolioProject.created_at.desc())
            .execution_options(populate_existing=True)
        )
        if limit:
            stmt = stmt.limit(limit)
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def get_portfolio_project(self, project_id: str, freelance_id: str) -> Optional[PortfolioProject]:
        """
        只會找到自己的作品 (別人的作品視同不存在)
        """
        stmt = (
            select(PortfolioProject)
            .where(
                PortfolioProject.project_id == project_id,
                PortfolioProject.freelance_id == freelance_id
            )
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def create_portfolio_project(self, freelance_id: str, data: dict) -> PortfolioProject:
        project = PortfolioProject(
            project_id=str(uuid.uuid4()),
            freelance_id=freelance_id,
            **data
        )
        self.db.add(project)
        await self.db.flush()
        return project

    async def delete_portfolio_project(self, project: PortfolioProject) -> None:
        await self.db.delete(project)
        await self.db.flush()
