# app/repositories/application_repo.py

from datetime import datetime
from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import joinedload, selectinload
from typing import Dict, List, Optional

from app.models.application import Application
from app.models.mission import Mission
from app.models.user import User # 用於 joinedload

class ApplicationRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _with_relations(stmt):
        """
        (重要) 所有列表查詢都使用同一個載入策略：
        1. 載入應徵的任務 (application.mission) 以及任務的客戶
        2. 載入應徵者 (application.freelance) 以及其 freelance_profile
        這樣回傳 Schema 時不會在非同步環境觸發 lazy load
        """
        return stmt.options(
            joinedload(Application.mission).joinedload(Mission.client),
            joinedload(Application.freelance).selectinload(User.freelance_profile),
        )

    async def get_application_by_id(self, application_id: str) -> Optional[Application]:
        """
        透過 ID 獲取單一應徵 (包含任務與應徵者)
        """
        stmt = self._with_relations(
            select(Application).where(Application.application_id == application_id)
        ).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def lock_application(self, application_id: str) -> Optional[Application]:
        """
        SELECT ... FOR UPDATE 鎖定應徵列 (客戶做決定、工作者撤回時使用)
        """
        stmt = (
            select(Application)
            .where(Application.application_id == application_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def check_existing_application(self, mission_id: str, freelance_id: str) -> Optional[Application]:
        """
        檢查特定工作者是否已應徵特定任務 (唯一性檢查)
        """
        stmt = select(Application).where(
            Application.mission_id == mission_id,
            Application.freelance_id == freelance_id
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def list_applications(
        self,
        mission_id: Optional[str] = None,
        freelance_id: Optional[str] = None,
        client_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Application]:
        """
        依條件列出應徵 (最新的在前)
        - mission_id: 特定任務的應徵
        - freelance_id: 特定工作者送出的應徵
        - client_id: 特定客戶所有任務收到的應徵
        """
        stmt = select(Application)
        if client_id:
            stmt = stmt.join(Mission, Mission.mission_id == Application.mission_id).where(
                Mission.client_id == client_id
            )
        if mission_id:
            stmt = stmt.where(Application.mission_id == mission_id)
        if freelance_id:
            stmt = stmt.where(Application.freelance_id == freelance_id)
        if status:
            stmt = stmt.where(Application.status == status)

        stmt = self._with_relations(stmt).order_by(Application.applied_at.desc(), Application.application_id)
        result = await self.db.execute(stmt)
        return result.unique().scalars().all()

    def add_application(self, application: Application) -> None:
        self.db.add(application)

    async def reject_other_pending(self, mission_id: str, accepted_id: str, responded_at: datetime) -> int:
        """
        接受某個應徵後，將同任務其他 pending 的應徵全部改為 rejected
        回傳被拒絕的筆數
        """
        stmt = (
            update(Application)
            .where(
                Application.mission_id == mission_id,
                Application.application_id != accepted_id,
                Application.status == 'pending'
            )
            .values(status='rejected', responded_at=responded_at)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount

    async def has_accepted_application(self, mission_id: str, exclude_id: str) -> bool:
        """同任務是否已有其他被接受的應徵 (exclude_id = 目前正在處理的這一筆)"""
        stmt = select(Application.application_id).where(
            Application.mission_id == mission_id,
            Application.application_id != exclude_id,
            Application.status == 'accepted'
        ).limit(1)
        result = await self.db.execute(stmt)
        return result.first() is not None

    async def delete_application(self, application: Application) -> None:
        """
        刪除應徵 (撤回)
        """
        await self.db.delete(application)
        await self.db.flush()

    async def count_by_status(self, freelance_id: str) -> Dict[str, int]:
        stmt = (
            select(Application.status, func.count(Application.application_id))
            .where(Application.freelance_id == freelance_id)
            .group_by(Application.status)
        )
        result = await self.db.execute(stmt)
        return {row[0]: row[1] for row in result.all()}
