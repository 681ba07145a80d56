# app/repositories/mission_repo.py

import logging
import uuid
from typing import Dict, List, Optional, Tuple
from sqlalchemy import func, delete, update, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import joinedload

# 匯入 Models
from app.models.mission import Mission, MissionSkill, MissionReport
from app.models.application import Application
from app.models.user import User

logger = logging.getLogger(__name__)

# 允許排序的欄位 (白名單)，避免任意欄位名稱進入 ORDER BY
SORTABLE_FIELDS = {
    "created_at": Mission.created_at,
    "updated_at": Mission.updated_at,
    "deadline": Mission.deadline,
    "budget_min": Mission.budget_min,
    "budget_max": Mission.budget_max,
    "title": Mission.title,
    "status": Mission.status,
}


def _applications_count_column():
    """每個任務的應徵數 (correlated scalar subquery)"""
    return (
        select(func.count(Application.application_id))
        .where(Application.mission_id == Mission.mission_id)
        .correlate(Mission)
        .scalar_subquery()
        .label("applications_count")
    )


def _escape_like(value: str) -> str:
    """使用者輸入的 % 和 _ 當一般字元比對 (跳脫字元 = 反斜線)"""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class MissionRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    # 建立新任務
    async def create_mission(self, mission_data: dict, client_id: str, skill_ids: List[str]) -> str:
        """
        建立新任務 (Mission) 並同時寫入 任務-技能 (MissionSkill) 關聯表
        commit 由上層 Service 的交易範圍負責
        """
        new_mission_id = str(uuid.uuid4())

        db_mission = Mission(
            **mission_data,
            mission_id=new_mission_id,
            client_id=client_id,
            status='open'
        )
        self.db.add(db_mission)
        await self.db.flush()

        await self.add_mission_skills(new_mission_id, skill_ids)
        return new_mission_id

    async def add_mission_skills(self, mission_id: str, skill_ids: List[str]) -> None:
        db_skill_links = [
            MissionSkill(
                mission_skill_id=str(uuid.uuid4()),
                mission_id=mission_id,
                skill_id=skill_id
            )
            for skill_id in skill_ids
        ]
        if db_skill_links:
            self.db.add_all(db_skill_links)
            await self.db.flush()

    async def replace_mission_skills(self, mission_id: str, skill_ids: List[str]) -> None:
        """
        覆蓋任務的技能 (先全部刪除再新增)
        """
        await self.db.execute(delete(MissionSkill).where(MissionSkill.mission_id == mission_id))
        await self.db.flush()
        await self.add_mission_skills(mission_id, skill_ids)

    # 獲取單一任務 (包含技能與客戶)
    async def get_mission_by_id(self, mission_id: str) -> Mission | None:
        """
        透過 ID 獲取單一任務
        (populate_existing：寫入後重新讀取時，確保 server 端產生的欄位也是最新的)
        """
        stmt = (
            select(Mission)
            .where(Mission.mission_id == mission_id)
            .options(joinedload(Mission.client))
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def lock_mission(self, mission_id: str) -> Mission | None:
        """
        SELECT ... FOR UPDATE 鎖定任務列 (接受應徵時使用)
        """
        stmt = (
            select(Mission)
            .where(Mission.mission_id == mission_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def assign_if_open(self, mission_id: str, freelance_id: str) -> bool:
        """
        (重要) Compare-and-set：只有在任務仍是 open 時才指派。
        回傳 False 代表任務已經不是 open (例如另一個應徵剛被接受)
        """
        stmt = (
            update(Mission)
            .where(Mission.mission_id == mission_id, Mission.status == 'open')
            .values(status='assigned', assigned_freelance_id=freelance_id)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount == 1

    async def count_applications(self, mission_id: str) -> int:
        stmt = select(func.count(Application.application_id)).where(Application.mission_id == mission_id)
        result = await self.db.execute(stmt)
        return result.scalar_one()

    async def has_reports(self, mission_id: str) -> bool:
        stmt = select(func.count(MissionReport.report_id)).where(MissionReport.mission_id == mission_id)
        result = await self.db.execute(stmt)
        return result.scalar_one() > 0

    # 條件搜尋任務
    async def list_missions(
        self,
        page: int,
        limit: int,
        sort_by: str,
        sort_order: str,
        status: Optional[str] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
        is_reported: Optional[bool] = None,
    ) -> Tuple[List[Tuple[Mission, int]], int]:
        """
        (核心功能) 依條件複合式搜尋任務，回傳 ([(任務, 應徵數)], 總筆數)
        1. 狀態 (status) / 分類 (category): 精確比對
        2. 關鍵字 (search): 標題、描述、客戶姓名模糊比對 (不分大小寫)
        3. 是否被檢舉 (is_reported)
        """
        conditions = []

        if status:
            conditions.append(Mission.status == status)

        if category:
            conditions.append(Mission.category == category)

        if search:
            pattern = f"%{_escape_like(search.strip())}%"
            logger.info(f"Applying search filter: {search}")
            conditions.append(or_(
                Mission.title.ilike(pattern, escape="\\"),
                Mission.description.ilike(pattern, escape="\\"),
                Mission.client.has((User.first_name + " " + User.last_name).ilike(pattern, escape="\\")),
            ))

        if is_reported is not None:
            reported = Mission.reports.any()
            conditions.append(reported if is_reported else ~reported)

        # 總筆數
        count_stmt = select(func.count(Mission.mission_id)).where(*conditions)
        total = (await self.db.execute(count_stmt)).scalar_one()

        # 資料頁
        order_column = SORTABLE_FIELDS[sort_by]
        ordering = order_column.asc() if sort_order == "asc" else order_column.desc()

        stmt = (
            select(Mission, _applications_count_column())
            .where(*conditions)
            .options(joinedload(Mission.client))
            .order_by(ordering, Mission.mission_id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        rows = [(mission, count) for mission, count in result.unique().all()]
        return rows, total

    async def delete_mission(self, mission: Mission) -> None:
        """
        刪除任務 (ORM cascade 會一併刪除技能關聯、應徵、檢舉)
        """
        await self.db.delete(mission)
        await self.db.flush()

    # --- 檢舉 ---
    async def get_report(self, mission_id: str, reporter_id: str) -> MissionReport | None:
        stmt = select(MissionReport).where(
            MissionReport.mission_id == mission_id,
            MissionReport.reporter_id == reporter_id
        ).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def create_report(self, mission_id: str, reporter_id: str, reason: str) -> MissionReport:
        report = MissionReport(
            report_id=str(uuid.uuid4()),
            mission_id=mission_id,
            reporter_id=reporter_id,
            reason=reason,
            status='pending'
        )
        self.db.add(report)
        await self.db.flush()
        return report

    # --- 統計 ---
    async def get_status_counts(self) -> Dict[str, int]:
        stmt = select(Mission.status, func.count(Mission.mission_id)).group_by(Mission.status)
        result = await self.db.execute(stmt)
        return {row[0]: row[1] for row in result.all()}

    async def count_reported_missions(self) -> int:
        stmt = select(func.count(func.distinct(MissionReport.mission_id)))
        result = await self.db.execute(stmt)
        return result.scalar_one()

    async def average_budget_max(self) -> Optional[float]:
        result = await self.db.execute(select(func.avg(Mission.budget_max)))
        value = result.scalar_one()
        return float(value) if value is not None else None
