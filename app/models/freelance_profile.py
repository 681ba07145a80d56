# app/models/freelance_profile.py
from sqlalchemy import Column, ForeignKey, DECIMAL, CHAR, Boolean, INT, TIMESTAMP, func
from sqlalchemy.orm import relationship
from app.core.database import Base

class FreelanceProfile(Base):
    __tablename__ = "freelance_profiles"
    profile_id = Column(CHAR(36), primary_key=True)
    user_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), unique=True, nullable=False, index=True)

    # 工作者可自行修改
    hourly_rate = Column(DECIMAL(10, 2))
    availability = Column(Boolean, default=True)
    experience_years = Column(INT, default=0)
    response_time_hours = Column(INT, default=24)

    # (重要) 以下統計欄位只由系統維護，任何 Request Schema 都不包含它們
    completed_missions = Column(INT, default=0)
    average_rating = Column(DECIMAL(3, 2), default=0)
    total_earnings = Column(DECIMAL(12, 2), default=0)

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    # 1-to-1 反向關聯到 User
    user = relationship("User", back_populates="freelance_profile")
