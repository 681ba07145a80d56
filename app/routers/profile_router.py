# app/routers/profile_router.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import get_db
from app.core.security import require_roles
from app.models.user import User, UserRoleEnum
from app.services.profile_service import ProfileService
from app.schemas.common_schema import ApiResponse
from app.schemas.profile_schema import (
    FreelanceProfileUpdate, MyProfileOut, ProfileStatsOut,
    SkillAdd, SkillLevelUpdate, PortfolioCreate, PortfolioUpdate, PortfolioOut
)
from app.schemas.skill_schema import UserSkillOut

import logging

logger = logging.getLogger(__name__)

# (重要) 整個路由僅限自由工作者
freelance_only = require_roles(UserRoleEnum.freelance)

router = APIRouter(
    prefix="/freelance-profile",
    tags=["Freelance Profile"],
    dependencies=[Depends(freelance_only)]
)

@router.get("", response_model=ApiResponse[MyProfileOut])
async def get_my_profile(
    current_user: User = Depends(freelance_only),
    db: AsyncSession = Depends(get_db)
):
    """
    獲取當前工作者的 Profile (基本資料 + 統計 + 技能 + 作品集)
    """
    service = ProfileService(db)
    return {"success": True, "data": await service.get_my_profile(current_user.user_id)}

@router.put("", response_model=ApiResponse[MyProfileOut])
async def update_my_profile(
    update_data: FreelanceProfileUpdate,
    current_user: User = Depends(freelance_only),
    db: AsyncSession = Depends(get_db)
):
    """
    更新 Profile。

    - `full_name` 會拆成名 / 姓。
    - `skills` 有值時整組覆蓋；單筆技能錯誤只會被略過。
    """
    service = ProfileService(db)
    profile, skipped = await service.update_my_profile(current_user, update_data)
    message = "Profile 已更新"
    if skipped:
        message += f" (略過 {len(skipped)} 筆技能)"
    return {"success": True, "message": message, "data": profile}

@router.get("/stats", response_model=ApiResponse[ProfileStatsOut])
async def get_my_stats(
    current_user: User = Depends(freelance_only),
    db: AsyncSession = Depends(get_db)
):
    service = ProfileService(db)
    return {"success": True, "data": await service.get_stats(current_user)}

# --- 作品集 ---
@router.post("/portfolio", response_model=ApiResponse[PortfolioOut], status_code=status.HTTP_201_CREATED)
async def create_portfolio_project(
    project_data: PortfolioCreate,
    current_user: User = Depends(freelance_only),
    db: AsyncSession = Depends(get_db)
):
    service = ProfileService(db)
    project = await service.create_portfolio_project(current_user, project_data)
    return {"success": True, "message": "作品已新增", "data": project}

@router.put("/portfolio/{project_id}", response_model=ApiResponse[PortfolioOut])
async def update_portfolio_project(
    project_id: str,
    project_data: PortfolioUpdate,
    current_user: User = Depends(freelance_only),
    db: AsyncSession = Depends(get_db)
):
    service = ProfileService(db)
    project = await service.update_portfolio_project(current_user, project_id, project_data)
    return {"success": True, "message": "作品已更新", "data": project}

@router.delete("/portfolio/{project_id}", response_model=ApiResponse[None])
async def delete_portfolio_project(
    project_id: str,
    current_user: User = Depends(freelance_only),
    db: AsyncSession = Depends(get_db)
):
    service = ProfileService(db)
    await service.delete_portfolio_project(current_user, project_id)
    return {"success": True, "message": "作品已刪除"}

# --- 技能 ---
@router.post("/skills", response_model=ApiResponse[UserSkillOut], status_code=status.HTTP_201_CREATED)
async def add_skill(
    skill_data: SkillAdd,
    current_user: User = Depends(freelance_only),
    db: AsyncSession = Depends(get_db)
):
    """
    新增單一技能 (熟練度可用法文或英文，無法辨識時視為 intermediate)
    """
    service = ProfileService(db)
    user_skill = await service.add_skill(current_user, skill_data)
    return {"success": True, "message": "技能已新增", "data": user_skill}

@router.put("/skills/{skill_id}", response_model=ApiResponse[UserSkillOut])
async def update_skill_level(
    skill_id: str,
    level_data: SkillLevelUpdate,
    current_user: User = Depends(freelance_only),
    db: AsyncSession = Depends(get_db)
):
    service = ProfileService(db)
    user_skill = await service.update_skill_level(current_user, skill_id, level_data.level)
    return {"success": True, "message": "技能已更新", "data": user_skill}

@router.delete("/skills/{skill_id}", response_model=ApiResponse[None])
async def remove_skill(
    skill_id: str,
    current_user: User = Depends(freelance_only),
    db: AsyncSession = Depends(get_db)
):
    service = ProfileService(db)
    await service.remove_skill(current_user, skill_id)
    return {"success": True, "message": "技能已移除"}
