# app/models/application.py
import uuid
from sqlalchemy import Column, Text, ForeignKey, TIMESTAMP, DECIMAL, DATE, CHAR, Enum, UniqueConstraint, func
from sqlalchemy.orm import relationship
from app.core.database import Base

APPLICATION_STATUSES = ('pending', 'accepted', 'rejected')

class Application(Base):
    __tablename__ = "applications"
    # 同一位工作者對同一任務只能應徵一次
    __table_args__ = (
        UniqueConstraint("mission_id", "freelance_id", name="uq_application"),
    )

    application_id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    mission_id = Column(CHAR(36), ForeignKey("missions.mission_id", ondelete="CASCADE"), nullable=False, index=True)
    freelance_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)

    proposal = Column(Text, nullable=False)
    proposed_budget = Column(DECIMAL(10, 2))
    proposed_deadline = Column(DATE)

    # pending -> accepted / rejected (只能決定一次)
    status = Column(Enum(*APPLICATION_STATUSES, name="application_status_enum"), default='pending', nullable=False, index=True)

    applied_at = Column(TIMESTAMP, server_default=func.now())
    # 客戶做出決定前為 NULL
    responded_at = Column(TIMESTAMP, nullable=True)

    # --- 建立關聯 (Relationships) ---
    mission = relationship("Mission", back_populates="applications")
    freelance = relationship("User", back_populates="applications")
