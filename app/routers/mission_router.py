# app/routers/mission_router.py
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

# 匯入核心依賴
from app.core.database import get_db
from app.core.security import get_current_user, require_roles
from app.models.user import User, UserRoleEnum

# 匯入 Service 和 Schemas
from app.services.mission_service import MissionService
from app.schemas.common_schema import ApiResponse
from app.schemas.mission_schema import (
    MissionCreate, MissionUpdate, MissionStatusUpdate, MissionReportCreate,
    MissionDetailOut, MissionListOut, MissionStatsOut, MissionReportOut, MissionStatus
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/missions",
    tags=["Missions"],
    # (重要) 該模組下的所有 API 都至少需要登入
    dependencies=[Depends(get_current_user)]
)

@router.get("", response_model=ApiResponse[MissionListOut])
async def search_missions(
    db: AsyncSession = Depends(get_db),
    page: int = 1,
    limit: int = 10,
    status: Optional[MissionStatus] = None,
    category: Optional[str] = None,
    search: Optional[str] = None,
    is_reported: Optional[bool] = None,
    sort_by: str = "created_at",
    sort_order: str = "desc",
):
    """
    搜尋/篩選任務 (分頁)。

    支援依 狀態、分類 (精確)、關鍵字 (標題/描述/客戶姓名) 進行篩選，
    sort_by 只接受白名單中的欄位。
    """
    logger.info(f"Mission search - status: {status}, category: {category}, search: {search}, page: {page}")

    service = MissionService(db)
    result = await service.list_missions(
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
        status=status,
        category=category,
        search=search,
        is_reported=is_reported,
    )
    return {"success": True, "data": result}

@router.post(
    "",
    response_model=ApiResponse[MissionDetailOut],
    status_code=status.HTTP_201_CREATED
)
async def create_new_mission(
    mission_data: MissionCreate, # Request Body
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRoleEnum.client, UserRoleEnum.admin))
):
    """
    刊登新任務。

    - (權限) 僅限「客戶」(或管理員)。
    - (資料) `skills` 為技能名稱列表，不存在的技能會自動建立。
    """
    service = MissionService(db)
    new_mission = await service.create_mission(mission_data=mission_data, user=current_user)
    return {"success": True, "message": "任務建立成功", "data": new_mission}

# (重要) 必須放在 /{mission_id} 之前，否則 "stats" 會被當成 mission_id
@router.get("/stats/overview", response_model=ApiResponse[MissionStatsOut])
async def get_mission_stats(db: AsyncSession = Depends(get_db)):
    """
    任務總覽統計 (總數、各狀態數量、被檢舉數、平均預算)
    """
    service = MissionService(db)
    return {"success": True, "data": await service.get_stats_overview()}

# 拿到特定的任務詳情
@router.get("/{mission_id}", response_model=ApiResponse[MissionDetailOut])
async def get_mission_by_id(
    mission_id: str,
    db: AsyncSession = Depends(get_db)
):
    """
    獲取單一任務的詳細資料。
    """
    service = MissionService(db)
    # Service 層會自動處理 404 Not Found
    mission = await service.get_mission_details(mission_id)
    return {"success": True, "data": mission}

@router.put("/{mission_id}", response_model=ApiResponse[MissionDetailOut])
async def update_mission_details(
    mission_id: str,
    mission_data: MissionUpdate, # Request Body
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    (客戶/管理員) 更新任務內容。已完成或已取消的任務不可修改。
    """
    service = MissionService(db)
    updated_mission = await service.update_mission(
        mission_id=mission_id,
        data=mission_data,
        user=current_user
    )
    return {"success": True, "message": "任務已更新", "data": updated_mission}

@router.patch("/{mission_id}/status", response_model=ApiResponse[MissionDetailOut])
async def update_mission_status(
    mission_id: str,
    status_data: MissionStatusUpdate, # Request Body
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    (客戶/管理員) 更新任務狀態。
    status 只能是 open / assigned / in_progress / completed / cancelled。
    """
    service = MissionService(db)
    updated_mission = await service.update_mission_status(
        mission_id=mission_id,
        new_status=status_data.status,
        user=current_user
    )
    return {"success": True, "message": "任務狀態已更新", "data": updated_mission}

@router.delete("/{mission_id}", response_model=ApiResponse[None])
async def delete_mission(
    mission_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    (客戶/管理員) 刪除任務，連同技能關聯、應徵與檢舉。
    """
    service = MissionService(db)
    await service.delete_mission(mission_id, current_user)
    return {"success": True, "message": "任務已刪除"}

@router.post(
    "/{mission_id}/report",
    response_model=ApiResponse[MissionReportOut],
    status_code=status.HTTP_201_CREATED
)
async def report_mission(
    mission_id: str,
    report_data: MissionReportCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    檢舉任務 (每位使用者對同一任務只能檢舉一次)
    """
    service = MissionService(db)
    report = await service.report_mission(mission_id, report_data.reason, current_user)
    return {"success": True, "message": "檢舉已送出", "data": report}
