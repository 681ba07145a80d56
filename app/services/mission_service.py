# app/services/mission_service.py
import logging
import math
from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import transactional
from app.core.exceptions import NotFound, Forbidden, Conflict, InvalidOperation, ValidationError
from app.models.mission import Mission, TERMINAL_MISSION_STATUSES, NON_SETTABLE_STATUSES
from app.models.user import User, UserRoleEnum
from app.repositories.mission_repo import MissionRepository, SORTABLE_FIELDS
from app.schemas.mission_schema import (
    MissionCreate, MissionUpdate, MissionOut, MissionDetailOut, MissionListOut, MissionStatsOut, MissionReportOut
)
from app.schemas.common_schema import Pagination
from app.services.skill_service import SkillService

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


def _is_owner_or_admin(mission: Mission, user: User) -> bool:
    return mission.client_id == user.user_id or user.role == UserRoleEnum.admin


class MissionService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = MissionRepository(db)
        self.skill_service = SkillService(db)

    async def _get_or_404(self, mission_id: str) -> Mission:
        mission = await self.repo.get_mission_by_id(mission_id)
        if not mission:
            raise NotFound("任務不存在")
        return mission

    async def _to_detail(self, mission: Mission) -> MissionDetailOut:
        count = await self.repo.count_applications(mission.mission_id)
        reported = await self.repo.has_reports(mission.mission_id)
        return MissionDetailOut.model_validate(mission).model_copy(
            update={"applications_count": count, "is_reported": reported}
        )

    async def _resolve_skill_ids(self, names: List[str]) -> List[str]:
        """技能名稱 -> skill_id (已在 Schema 中去重，這裡再以 ID 去重一次)"""
        skill_ids = []
        for name in names:
            skill_id = await self.skill_service.resolve(name)
            if skill_id not in skill_ids:
                skill_ids.append(skill_id)
        return skill_ids

    # 建立任務
    async def create_mission(self, mission_data: MissionCreate, user: User) -> MissionDetailOut:
        """
        業務邏輯：客戶刊登新任務
        任務本身與技能關聯在同一個交易中寫入，任何一步失敗都全部回滾
        """
        if user.role not in (UserRoleEnum.client, UserRoleEnum.admin):
            raise Forbidden("只有客戶可以刊登任務")

        async with transactional(self.db):
            skill_ids = await self._resolve_skill_ids(mission_data.skills)
            mission_id = await self.repo.create_mission(
                mission_data=mission_data.model_dump(exclude={"skills"}),
                client_id=user.user_id,
                skill_ids=skill_ids
            )

        logger.info(f"任務已建立: {mission_id} (client={user.user_id}, skills={len(skill_ids)})")
        mission = await self._get_or_404(mission_id)
        return await self._to_detail(mission)

    # 搜尋任務
    async def list_missions(
        self,
        page: int = 1,
        limit: int = 10,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        status: Optional[str] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
        is_reported: Optional[bool] = None,
    ) -> MissionListOut:
        if page < 1:
            raise ValidationError("page 必須大於等於 1")
        if limit < 1 or limit > MAX_PAGE_SIZE:
            raise ValidationError(f"limit 必須介於 1 到 {MAX_PAGE_SIZE}")
        if sort_by not in SORTABLE_FIELDS:
            raise ValidationError(f"不支援的排序欄位: {sort_by}")
        sort_order = sort_order.lower()
        if sort_order not in ("asc", "desc"):
            raise ValidationError("sort_order 只能是 asc 或 desc")

        rows, total = await self.repo.list_missions(
            page=page,
            limit=limit,
            sort_by=sort_by,
            sort_order=sort_order,
            status=status,
            category=category,
            search=search,
            is_reported=is_reported,
        )

        missions = [
            MissionOut.model_validate(mission).model_copy(update={"applications_count": count})
            for mission, count in rows
        ]
        return MissionListOut(
            missions=missions,
            pagination=Pagination(
                current_page=page,
                total_items=total,
                total_pages=math.ceil(total / limit) if total else 0,
                items_per_page=limit,
            ),
        )

    async def get_mission_details(self, mission_id: str) -> MissionDetailOut:
        mission = await self._get_or_404(mission_id)
        return await self._to_detail(mission)

    # 更新任務內容
    async def update_mission(self, mission_id: str, data: MissionUpdate, user: User) -> MissionDetailOut:
        """
        (客戶/管理員) 更新任務內容，技能列表若有提供則整組覆蓋
        """
        mission = await self._get_or_404(mission_id)

        if not _is_owner_or_admin(mission, user):
            logger.warning(f"使用者 {user.user_id} 嘗試修改他人的任務 {mission_id}")
            raise Forbidden("你沒有權限修改此任務")

        if mission.status in TERMINAL_MISSION_STATUSES:
            raise InvalidOperation("已完成或已取消的任務無法修改")

        update_data = data.model_dump(exclude_unset=True, exclude={"skills"})

        # 合併後的預算區間仍需 min <= max
        new_min = update_data.get("budget_min", mission.budget_min)
        new_max = update_data.get("budget_max", mission.budget_max)
        if new_min is not None and new_max is not None and float(new_min) > float(new_max):
            raise ValidationError("最低預算不可大於最高預算")

        async with transactional(self.db):
            for key, value in update_data.items():
                setattr(mission, key, value)
            if data.skills is not None:
                skill_ids = await self._resolve_skill_ids(data.skills)
                await self.repo.replace_mission_skills(mission_id, skill_ids)

        logger.info(f"任務已更新: {mission_id} 欄位={list(update_data.keys())}")
        mission = await self._get_or_404(mission_id)
        return await self._to_detail(mission)

    # 更新任務狀態
    async def update_mission_status(self, mission_id: str, new_status: str, user: User) -> MissionDetailOut:
        """
        狀態轉換 (不會動到 assigned_freelance_id)
        completed / cancelled 為終止狀態
        不能轉回 open 或轉入 assigned (只有接受應徵會寫入)，
        否則同一任務可能出現第二個被接受的應徵
        """
        mission = await self._get_or_404(mission_id)

        if not _is_owner_or_admin(mission, user):
            logger.warning(f"使用者 {user.user_id} 嘗試變更他人任務 {mission_id} 的狀態")
            raise Forbidden("你沒有權限變更此任務的狀態")

        if mission.status in TERMINAL_MISSION_STATUSES and new_status != mission.status:
            raise InvalidOperation(f"任務已是 {mission.status}，無法再變更狀態")

        if new_status in NON_SETTABLE_STATUSES and new_status != mission.status:
            raise InvalidOperation(f"任務狀態不能手動改為 {new_status}")

        old_status = mission.status
        async with transactional(self.db):
            mission.status = new_status

        logger.info(f"任務 {mission_id} 狀態: {old_status} -> {new_status}")
        mission = await self._get_or_404(mission_id)
        return await self._to_detail(mission)

    # 刪除任務
    async def delete_mission(self, mission_id: str, user: User) -> None:
        mission = await self._get_or_404(mission_id)

        if not _is_owner_or_admin(mission, user):
            logger.warning(f"使用者 {user.user_id} 嘗試刪除他人的任務 {mission_id}")
            raise Forbidden("你沒有權限刪除此任務")

        async with transactional(self.db):
            await self.repo.delete_mission(mission)

        logger.info(f"任務已刪除: {mission_id}")

    # 檢舉任務
    async def report_mission(self, mission_id: str, reason: str, user: User) -> MissionReportOut:
        await self._get_or_404(mission_id)

        existing = await self.repo.get_report(mission_id, user.user_id)
        if existing:
            raise Conflict("你已經檢舉過此任務")

        try:
            async with transactional(self.db):
                await self.repo.create_report(mission_id, user.user_id, reason)
        except IntegrityError:
            # 同時送出的重複檢舉：唯一鍵 (mission_id, reporter_id) 擋下
            logger.warning(f"重複檢舉被唯一鍵擋下: mission={mission_id} reporter={user.user_id}")
            raise Conflict("你已經檢舉過此任務")

        logger.info(f"任務 {mission_id} 被使用者 {user.user_id} 檢舉")
        report = await self.repo.get_report(mission_id, user.user_id)
        return MissionReportOut.model_validate(report)

    async def get_stats_overview(self) -> MissionStatsOut:
        by_status = await self.repo.get_status_counts()
        return MissionStatsOut(
            total=sum(by_status.values()),
            by_status=by_status,
            reported=await self.repo.count_reported_missions(),
            average_budget_max=await self.repo.average_budget_max(),
        )
