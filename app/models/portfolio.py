# app/models/portfolio.py
import uuid
from sqlalchemy import Column, String, TEXT, JSON, CHAR, ForeignKey, TIMESTAMP, func
from sqlalchemy.orm import relationship
from app.core.database import Base

class PortfolioProject(Base):
    __tablename__ = "portfolio_projects"

    project_id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    freelance_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(TEXT, nullable=False)
    image_url = Column(String(500))
    project_url = Column(String(500))
    # 技術清單 (字串陣列)
    technologies = Column(JSON)
    created_at = Column(TIMESTAMP, server_default=func.now(), index=True)
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    freelance = relationship("User", back_populates="portfolio_projects")
