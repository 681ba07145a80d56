# app/schemas/application_schema.py
from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import date, datetime
from typing import Optional, Literal

from app.schemas.user_schema import UserSummary

# --- 建立 (Create) ---
class ApplicationCreate(BaseModel):
    mission_id: str
    proposal: str = Field(..., max_length=5000)
    proposed_budget: Optional[float] = Field(None, gt=0)
    proposed_deadline: Optional[date] = None

    @field_validator('proposal')
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('請填寫提案內容')
        return v

# --- 客戶決定 ---
class ApplicationDecision(BaseModel):
    status: Literal['accepted', 'rejected']

# --- 讀取 (Read / Out) ---
class ApplicationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    application_id: str
    mission_id: str
    freelance_id: str
    proposal: str
    proposed_budget: Optional[float] = None
    proposed_deadline: Optional[date] = None
    status: str
    applied_at: Optional[datetime] = None
    responded_at: Optional[datetime] = None


# 嵌套在應徵列表中的工作者 Profile 摘要
class FreelanceProfileSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    hourly_rate: Optional[float] = None
    experience_years: Optional[int] = None
    completed_missions: Optional[int] = None
    average_rating: Optional[float] = None

class ApplicantOut(UserSummary):
    # (重要) 對應 User Model 上的 'freelance_profile' relationship
    freelance_profile: Optional[FreelanceProfileSummary] = None

class ApplicationMissionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    mission_id: str
    title: str
    status: str
    budget_min: Optional[float] = None
    budget_max: Optional[float] = None
    deadline: Optional[date] = None
    client_id: str
    client: Optional[UserSummary] = None

# --- 包含關聯資料的完整輸出 (列表用) ---
class ApplicationDetailOut(ApplicationOut):
    mission: Optional[ApplicationMissionOut] = None
    freelance: Optional[ApplicantOut] = None

class ApplicationStatsOut(BaseModel):
    total: int
    pending: int
    accepted: int
    rejected: int
    success_rate: float
