# app/routers/skill_router.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import get_db
from app.core.security import get_current_user
from app.services.skill_service import SkillService
from app.schemas.common_schema import ApiResponse
from app.schemas.skill_schema import SkillOut
from typing import List

router = APIRouter(
    prefix="/skills",
    tags=["Skills"],
    dependencies=[Depends(get_current_user)] # 必須登入才能看
)

@router.get("", response_model=ApiResponse[List[SkillOut]])
async def get_all_skills(db: AsyncSession = Depends(get_db)):
    """
    獲取所有技能 (供前端選擇器使用)
    """
    service = SkillService(db)
    return {"success": True, "data": await service.list_skills()}
