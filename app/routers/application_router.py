# app/routers/application_router.py

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Literal, Optional

from app.core.database import get_db
from app.core.security import get_current_user, require_roles
from app.models.user import User, UserRoleEnum
from app.services.application_service import ApplicationService
from app.schemas.common_schema import ApiResponse
from app.schemas.application_schema import (
    ApplicationCreate,
    ApplicationDecision,
    ApplicationDetailOut,
    ApplicationStatsOut,
)

# 建立 API Router
router = APIRouter(
    prefix="/applications",
    tags=["Applications"],
    dependencies=[Depends(get_current_user)] # 重要：此 router 下所有 API 都需要登入
)

# -----------------------------------------------------------------
# 1. (工作者) 應徵任務
# -----------------------------------------------------------------
@router.post(
    "",
    response_model=ApiResponse[ApplicationDetailOut],
    status_code=status.HTTP_201_CREATED
)
async def submit_application(
    application_data: ApplicationCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    自由工作者對 open 狀態的任務送出應徵。
    """
    service = ApplicationService(db)
    new_application = await service.apply(application_data, current_user)
    return {"success": True, "message": "應徵已送出", "data": new_application}

# -----------------------------------------------------------------
# 2. 列出應徵
# -----------------------------------------------------------------
@router.get("", response_model=ApiResponse[List[ApplicationDetailOut]])
async def list_applications(
    mission_id: Optional[str] = None,
    status: Optional[Literal['pending', 'accepted', 'rejected']] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    - 帶 mission_id：任務的客戶檢視該任務收到的應徵
    - 不帶：工作者看自己送出的、客戶看自己所有任務收到的
    """
    service = ApplicationService(db)
    applications = await service.list_applications(current_user, mission_id=mission_id, status=status)
    return {"success": True, "data": applications}

# -----------------------------------------------------------------
# 3. (工作者) 應徵統計
# (重要) 必須放在 /{application_id} 相關路由之前
# -----------------------------------------------------------------
@router.get("/stats", response_model=ApiResponse[ApplicationStatsOut])
async def get_application_stats(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRoleEnum.freelance))
):
    service = ApplicationService(db)
    return {"success": True, "data": await service.get_stats(current_user)}

# -----------------------------------------------------------------
# 4. (客戶) 接受 / 拒絕應徵
# -----------------------------------------------------------------
@router.patch("/{application_id}/status", response_model=ApiResponse[ApplicationDetailOut])
async def decide_application(
    application_id: str,
    decision: ApplicationDecision,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRoleEnum.client, UserRoleEnum.admin))
):
    """
    任務的客戶接受 (accepted) 或拒絕 (rejected) 一個應徵。

    - 接受後任務會變成 assigned，並自動拒絕同任務其他 pending 的應徵。
    """
    service = ApplicationService(db)
    updated = await service.decide(application_id, decision.status, current_user)
    message = "已接受應徵" if decision.status == 'accepted' else "已拒絕應徵"
    return {"success": True, "message": message, "data": updated}

# -----------------------------------------------------------------
# 5. (工作者) 撤回應徵
# -----------------------------------------------------------------
@router.delete("/{application_id}", response_model=ApiResponse[None])
async def withdraw_application(
    application_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRoleEnum.freelance))
):
    """
    自由工作者撤回自己 pending 的應徵。
    """
    service = ApplicationService(db)
    await service.withdraw(application_id, current_user)
    return {"success": True, "message": "應徵已撤回"}
