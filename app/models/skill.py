# app/models/skill.py
from sqlalchemy import Column, String, ForeignKey, CHAR, Enum, TIMESTAMP, UniqueConstraint, func
from sqlalchemy.orm import relationship
from app.core.database import Base

# 四個標準熟練度 (自由輸入會先經過 normalize_proficiency)
PROFICIENCY_LEVELS = ('beginner', 'intermediate', 'advanced', 'expert')

DEFAULT_SKILL_CATEGORY = "Général"

class Skill(Base):
    __tablename__ = "skills"
    skill_id = Column(CHAR(36), primary_key=True)
    # 唯一性：比對時一律 trim + 不分大小寫
    name = Column(String(100), unique=True, nullable=False)
    category = Column(String(50), nullable=False, default=DEFAULT_SKILL_CATEGORY)
    created_at = Column(TIMESTAMP, server_default=func.now())

    users = relationship("UserSkill", back_populates="skill")
    missions = relationship("MissionSkill", back_populates="skill")

class UserSkill(Base):
    __tablename__ = "user_skills"
    __table_args__ = (
        UniqueConstraint("user_id", "skill_id", name="uq_user_skill"),
    )

    user_skill_id = Column(CHAR(36), primary_key=True)
    user_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    skill_id = Column(CHAR(36), ForeignKey("skills.skill_id", ondelete="CASCADE"), nullable=False, index=True)
    proficiency = Column(Enum(*PROFICIENCY_LEVELS, name="proficiency_enum"), default='intermediate', nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now())

    # 關聯回 Skill (一)
    skill = relationship("Skill", back_populates="users", lazy="selectin")
    user = relationship("User", back_populates="skills")
