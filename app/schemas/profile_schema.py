# app/schemas/profile_schema.py
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import List, Optional
from datetime import datetime
from app.schemas.skill_schema import UserSkillOut
from app.schemas.user_schema import UserOut


def _strip_required(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError('欄位不可為空白')
    return v


# --- 技能 (用於 Profile 更新) ---
class SkillEntry(BaseModel):
    # 不在這裡擋空白名稱：單筆失敗只會被略過，不影響整份 Profile
    name: str = ""
    level: Optional[str] = None

class SkillAdd(BaseModel):
    name: str = Field(..., max_length=100)
    level: Optional[str] = None

    @field_validator('name')
    @classmethod
    def not_blank(cls, v: str) -> str:
        return _strip_required(v)

class SkillLevelUpdate(BaseModel):
    level: str


# --- 自由工作者 (Freelance) ---
class FreelanceProfileUpdate(BaseModel):
    full_name: str = Field(..., max_length=201)
    bio: str
    hourly_rate: Optional[float] = Field(None, ge=0)
    availability: Optional[bool] = None
    experience_years: Optional[int] = Field(None, ge=0)
    response_time_hours: Optional[int] = Field(None, ge=0)
    # None = 不變動技能；空列表也視為不變動
    skills: Optional[List[SkillEntry]] = None

    # (重要) 統計欄位 (completed_missions / average_rating / total_earnings)
    # 刻意不出現在這裡，多餘欄位會被忽略

    @field_validator('full_name', 'bio')
    @classmethod
    def not_blank(cls, v: str) -> str:
        return _strip_required(v)

class FreelanceProfileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    profile_id: str
    user_id: str
    hourly_rate: Optional[float] = None
    availability: Optional[bool] = None
    experience_years: Optional[int] = None
    response_time_hours: Optional[int] = None
    completed_missions: Optional[int] = None
    average_rating: Optional[float] = None
    total_earnings: Optional[float] = None


# --- 作品集 (Portfolio) ---
class PortfolioBase(BaseModel):
    image_url: Optional[str] = Field(None, max_length=500)
    project_url: Optional[str] = Field(None, max_length=500)

class PortfolioCreate(PortfolioBase):
    title: str = Field(..., max_length=255)
    description: str
    technologies: List[str] = []

    @field_validator('title', 'description')
    @classmethod
    def not_blank(cls, v: str) -> str:
        return _strip_required(v)

    @field_validator('technologies')
    @classmethod
    def drop_blank(cls, v: List[str]) -> List[str]:
        return [t.strip() for t in v if t and t.strip()]

class PortfolioUpdate(PortfolioBase):
    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    technologies: Optional[List[str]] = None

    @field_validator('title', 'description')
    @classmethod
    def not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _strip_required(v)

    @field_validator('technologies')
    @classmethod
    def drop_blank(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return v
        return [t.strip() for t in v if t and t.strip()]

class PortfolioOut(PortfolioBase):
    model_config = ConfigDict(from_attributes=True)

    project_id: str
    freelance_id: str
    title: str
    description: str
    technologies: Optional[List[str]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# --- 組合輸出 ---
class MyProfileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user: UserOut
    profile: Optional[FreelanceProfileOut] = None
    skills: List[UserSkillOut] = []
    portfolio: List[PortfolioOut] = []

class ProfileStatsOut(BaseModel):
    completed_missions: int
    average_rating: float
    total_earnings: float
    response_time_hours: int
    pending_applications: int
    active_missions: int
