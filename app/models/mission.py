# models/mission.py
from sqlalchemy import (
    Column, String, TEXT, DECIMAL, DATE, TIMESTAMP, Boolean, ForeignKey, Enum, CHAR, UniqueConstraint, func
)
from sqlalchemy.orm import relationship
from app.core.database import Base

# 任務狀態機：
# open --(接受應徵)--> assigned --> in_progress --> completed
#   └--(客戶取消，completed 之前任何狀態)--> cancelled
MISSION_STATUSES = ('open', 'assigned', 'in_progress', 'completed', 'cancelled')
# 終止狀態，不可再轉出
TERMINAL_MISSION_STATUSES = ('completed', 'cancelled')
# open 只在建立時寫入、assigned 只由「接受應徵」寫入；狀態路由不可轉入
NON_SETTABLE_STATUSES = ('open', 'assigned')

BUDGET_TYPES = ('fixed', 'hourly')
EXPERIENCE_LEVELS = ('beginner', 'intermediate', 'expert')
REPORT_STATUSES = ('pending', 'reviewed', 'resolved')

class Mission(Base):
    # 對應資料庫中名為 missions 的表格
    __tablename__ = "missions"

    mission_id = Column(CHAR(36), primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(TEXT, nullable=False)
    category = Column(String(100), nullable=False)
    budget_min = Column(DECIMAL(10, 2))
    budget_max = Column(DECIMAL(10, 2))
    budget_type = Column(Enum(*BUDGET_TYPES, name="budget_type_enum"), default='fixed')
    currency = Column(String(3), default='EUR')
    deadline = Column(DATE)

    # 擁有者 (建立後不可變更)
    client_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    # 只有「接受應徵」會寫入此欄位
    assigned_freelance_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True, index=True)

    status = Column(Enum(*MISSION_STATUSES, name="mission_status_enum"), default='open', nullable=False, index=True)
    is_remote = Column(Boolean, default=True)
    is_urgent = Column(Boolean, default=False)
    location = Column(String(255))
    experience_level = Column(Enum(*EXPERIENCE_LEVELS, name="experience_level_enum"), default='intermediate')

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    # 建立與 User (客戶) 的 '一' 關聯
    client = relationship(
        "User",
        back_populates="missions_owned",
        foreign_keys=[client_id],
    )

    assigned_freelance = relationship(
        "User",
        foreign_keys=[assigned_freelance_id],
    )

    # 建立與 'MissionSkill' (關聯表) 的 '多' 關聯
    skills = relationship(
        "MissionSkill",
        back_populates="mission",
        cascade="all, delete-orphan",
        lazy="selectin"
    )

    # 刪除任務時，一併刪除應徵與檢舉
    applications = relationship(
        "Application",
        back_populates="mission",
        cascade="all, delete-orphan"
    )

    reports = relationship(
        "MissionReport",
        back_populates="mission",
        cascade="all, delete-orphan"
    )

class MissionSkill(Base):
    __tablename__ = "mission_skills"
    __table_args__ = (
        UniqueConstraint("mission_id", "skill_id", name="uq_mission_skill"),
    )

    mission_skill_id = Column(CHAR(36), primary_key=True)
    mission_id = Column(CHAR(36), ForeignKey("missions.mission_id", ondelete="CASCADE"), nullable=False, index=True)
    skill_id = Column(CHAR(36), ForeignKey("skills.skill_id", ondelete="CASCADE"), nullable=False, index=True)

    # 建立反向關聯回 Mission
    mission = relationship("Mission", back_populates="skills")

    skill = relationship(
        "Skill",
        back_populates="missions",
        lazy="selectin"
    )

class MissionReport(Base):
    __tablename__ = "mission_reports"
    __table_args__ = (
        UniqueConstraint("mission_id", "reporter_id", name="uq_mission_report"),
    )

    report_id = Column(CHAR(36), primary_key=True)
    mission_id = Column(CHAR(36), ForeignKey("missions.mission_id", ondelete="CASCADE"), nullable=False, index=True)
    reporter_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    reason = Column(TEXT, nullable=False)
    status = Column(Enum(*REPORT_STATUSES, name="report_status_enum"), default='pending')
    admin_notes = Column(TEXT)
    created_at = Column(TIMESTAMP, server_default=func.now())

    mission = relationship("Mission", back_populates="reports")
    reporter = relationship("User")
