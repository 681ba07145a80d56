# models/user.py
from sqlalchemy import Column, String, Boolean, Enum, CHAR, TEXT, TIMESTAMP, func
from app.core.database import Base
import enum
from sqlalchemy.orm import relationship

# 對應 SQL 中的 ENUM 型別
class UserRoleEnum(str, enum.Enum):
    client = "client"
    freelance = "freelance"
    admin = "admin"

class User(Base):
    __tablename__ = "users"

    # 基本欄位
    user_id = Column(CHAR(36), primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(Enum(UserRoleEnum, values_callable=lambda obj: [e.value for e in obj]), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    email_verified = Column(Boolean, default=False)

    # 顯示用資料
    first_name = Column(String(100))
    last_name = Column(String(100))
    avatar = Column(String(500))
    bio = Column(TEXT)
    location = Column(String(255))
    phone = Column(String(20))
    website = Column(String(255))

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    # 關聯設定
    missions_owned = relationship(
        "Mission",
        back_populates="client",
        foreign_keys="[Mission.client_id]",
        cascade="all, delete-orphan",
    )

    applications = relationship(
        "Application",
        back_populates="freelance",
        cascade="all, delete-orphan",
    )

    freelance_profile = relationship(
        "FreelanceProfile",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan"
    )

    skills = relationship(
        "UserSkill",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    portfolio_projects = relationship(
        "PortfolioProject",
        back_populates="freelance",
        cascade="all, delete-orphan",
    )

    posts = relationship(
        "Post",
        back_populates="author",
        cascade="all, delete-orphan",
    )
