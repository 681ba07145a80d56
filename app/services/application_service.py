# app/services/application_service.py

import logging
from datetime import datetime
from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import transactional
from app.core.exceptions import NotFound, Forbidden, Conflict, InvalidOperation, MissionClosed
from app.models.application import Application
from app.models.user import User, UserRoleEnum
from app.repositories.application_repo import ApplicationRepository
from app.repositories.mission_repo import MissionRepository
from app.schemas.application_schema import ApplicationCreate, ApplicationStatsOut

logger = logging.getLogger(__name__)


class ApplicationService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.application_repo = ApplicationRepository(db)
        self.mission_repo = MissionRepository(db)

    async def _get_or_404(self, application_id: str) -> Application:
        application = await self.application_repo.get_application_by_id(application_id)
        if not application:
            raise NotFound("應徵不存在")
        return application

    # 工作者應徵任務
    async def apply(self, data: ApplicationCreate, freelance: User) -> Application:
        """
        前置條件依序檢查：
        角色 -> 任務存在 -> 任務開放中 -> 不是自己的任務 -> 尚未應徵過
        """
        if freelance.role != UserRoleEnum.freelance:
            raise Forbidden("只有自由工作者可以應徵任務")

        mission = await self.mission_repo.get_mission_by_id(data.mission_id)
        if not mission:
            raise NotFound("任務不存在")
        if mission.status != 'open':
            raise MissionClosed()
        if mission.client_id == freelance.user_id:
            raise InvalidOperation("不能應徵自己刊登的任務")

        existing = await self.application_repo.check_existing_application(data.mission_id, freelance.user_id)
        if existing:
            raise Conflict("你已經應徵過此任務")

        new_application = Application(
            mission_id=data.mission_id,
            freelance_id=freelance.user_id,
            proposal=data.proposal,
            proposed_budget=data.proposed_budget,
            proposed_deadline=data.proposed_deadline,
            status='pending'
        )

        try:
            async with transactional(self.db):
                self.application_repo.add_application(new_application)
                await self.db.flush()
        except IntegrityError:
            # 同時送出的重複應徵：唯一鍵 (mission_id, freelance_id) 擋下
            logger.warning(f"重複應徵被唯一鍵擋下: mission={data.mission_id} freelance={freelance.user_id}")
            raise Conflict("你已經應徵過此任務")

        logger.info(f"新應徵: {new_application.application_id} (mission={data.mission_id}, freelance={freelance.user_id})")
        return await self._get_or_404(new_application.application_id)

    # 列出應徵
    async def list_applications(
        self,
        user: User,
        mission_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Application]:
        """
        - 指定 mission_id：必須是該任務的客戶 (或管理員)
        - 未指定：工作者看自己的、客戶看自己任務收到的、管理員看全部
        """
        if mission_id:
            mission = await self.mission_repo.get_mission_by_id(mission_id)
            if not mission:
                raise NotFound("任務不存在")
            if mission.client_id != user.user_id and user.role != UserRoleEnum.admin:
                logger.warning(f"使用者 {user.user_id} 嘗試檢視任務 {mission_id} 的應徵")
                raise Forbidden("你沒有權限檢視此任務的應徵")
            return await self.application_repo.list_applications(mission_id=mission_id, status=status)

        if user.role == UserRoleEnum.freelance:
            return await self.application_repo.list_applications(freelance_id=user.user_id, status=status)
        if user.role == UserRoleEnum.client:
            return await self.application_repo.list_applications(client_id=user.user_id, status=status)
        return await self.application_repo.list_applications(status=status)

    # 客戶接受 / 拒絕應徵
    async def decide(self, application_id: str, decision: str, client: User) -> Application:
        """
        整個決定流程在同一個交易中完成：
        1. 鎖定應徵列，檢查權限與 pending 狀態
        2. 寫入 status + responded_at
        3. (接受時) 鎖定任務列，以 compare-and-set 將任務由 open 改為 assigned，
           再把同任務其他 pending 的應徵全部拒絕
        任何一步失敗都整批回滾
        """
        async with transactional(self.db):
            application = await self.application_repo.lock_application(application_id)
            if not application:
                raise NotFound("應徵不存在")

            mission = await self.mission_repo.get_mission_by_id(application.mission_id)
            if mission is None or mission.client_id != client.user_id:
                logger.warning(f"使用者 {client.user_id} 嘗試處理不屬於自己任務的應徵 {application_id}")
                raise Forbidden("你沒有權限處理此應徵")

            if application.status != 'pending':
                raise InvalidOperation("此應徵已被處理")

            now = datetime.now()
            application.status = decision
            application.responded_at = now

            if decision == 'accepted':
                await self.mission_repo.lock_mission(mission.mission_id)
                if await self.application_repo.has_accepted_application(mission.mission_id, application.application_id):
                    raise InvalidOperation("此任務已有被接受的應徵")
                assigned = await self.mission_repo.assign_if_open(mission.mission_id, application.freelance_id)
                if not assigned:
                    raise InvalidOperation("任務已不是開放狀態，無法接受應徵")

                rejected = await self.application_repo.reject_other_pending(
                    mission.mission_id, application.application_id, now
                )
                logger.info(
                    f"任務 {mission.mission_id} 指派給 {application.freelance_id}，"
                    f"自動拒絕其他 {rejected} 筆應徵"
                )

        logger.info(f"應徵 {application_id} -> {decision}")
        return await self._get_or_404(application_id)

    # 工作者撤回應徵
    async def withdraw(self, application_id: str, freelance: User) -> None:
        """
        鎖定應徵列後才檢查狀態並刪除，避免和客戶同時「接受」互相覆蓋
        """
        async with transactional(self.db):
            application = await self.application_repo.lock_application(application_id)
            if not application:
                raise NotFound("應徵不存在")
            if application.freelance_id != freelance.user_id:
                raise Forbidden("你沒有權限撤回此應徵")
            if application.status != 'pending':
                raise InvalidOperation("應徵已被處理，無法撤回")

            await self.application_repo.delete_application(application)

        logger.info(f"應徵已撤回: {application_id}")

    async def get_stats(self, freelance: User) -> ApplicationStatsOut:
        counts = await self.application_repo.count_by_status(freelance.user_id)
        total = sum(counts.values())
        accepted = counts.get('accepted', 0)
        return ApplicationStatsOut(
            total=total,
            pending=counts.get('pending', 0),
            accepted=accepted,
            rejected=counts.get('rejected', 0),
            success_rate=round(accepted / total, 4) if total else 0.0,
        )
