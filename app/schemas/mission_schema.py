# app/schemas/mission_schema.py
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator
from typing import List, Optional, Literal
from datetime import date, datetime
from app.schemas.common_schema import Pagination
from app.schemas.skill_schema import MissionSkillOut
from app.schemas.user_schema import UserSummary

MissionStatus = Literal['open', 'assigned', 'in_progress', 'completed', 'cancelled']
BudgetType = Literal['fixed', 'hourly']
ExperienceLevel = Literal['beginner', 'intermediate', 'expert']


def clean_skill_names(names: List[str]) -> List[str]:
    """
    去除空白、丟棄空字串，並以不分大小寫的方式去重 (保留第一次出現的寫法)
    e.g. ["Go", "Go", "go "] -> ["Go"]
    """
    seen = set()
    cleaned = []
    for raw in names:
        name = (raw or "").strip()
        if not name:
            continue
        key = name.lower()
        if key in seen:
            continue
        seen.add(key)
        cleaned.append(name)
    return cleaned


# 1. 客戶刊登任務時的 Request Body (Input)
class MissionCreate(BaseModel):
    title: str = Field(..., max_length=255)
    description: str
    category: str = Field(..., max_length=100)
    budget_min: float = Field(..., gt=0)
    budget_max: float = Field(..., gt=0)
    budget_type: BudgetType = 'fixed'
    currency: str = Field('EUR', min_length=3, max_length=3)
    deadline: date
    is_remote: bool = True
    is_urgent: bool = False
    location: Optional[str] = Field(None, max_length=255)
    experience_level: ExperienceLevel = 'intermediate'
    # (重要) 技能名稱 (自由輸入)，由 SkillService 解析成 skill_id
    skills: List[str] = []

    @field_validator('title', 'description', 'category')
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('欄位不可為空白')
        return v

    @field_validator('deadline')
    @classmethod
    def deadline_not_in_past(cls, v: date) -> date:
        if v < date.today():
            raise ValueError('截止日期不可早於今天')
        return v

    @field_validator('skills')
    @classmethod
    def normalize_skills(cls, v: List[str]) -> List[str]:
        return clean_skill_names(v)

    @model_validator(mode='after')
    def check_budget_range(self):
        if self.budget_min > self.budget_max:
            raise ValueError('最低預算不可大於最高預算')
        return self


# 2. 客戶更新任務時的 Request Body (所有欄位皆可選)
class MissionUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    budget_min: Optional[float] = Field(None, gt=0)
    budget_max: Optional[float] = Field(None, gt=0)
    budget_type: Optional[BudgetType] = None
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    deadline: Optional[date] = None
    is_remote: Optional[bool] = None
    is_urgent: Optional[bool] = None
    location: Optional[str] = Field(None, max_length=255)
    experience_level: Optional[ExperienceLevel] = None
    # None = 不變動；[] = 清空所有技能
    skills: Optional[List[str]] = None

    @field_validator('title', 'description', 'category')
    @classmethod
    def not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError('欄位不可為空白')
        return v

    @field_validator('deadline')
    @classmethod
    def deadline_not_in_past(cls, v: Optional[date]) -> Optional[date]:
        if v is not None and v < date.today():
            raise ValueError('截止日期不可早於今天')
        return v

    @field_validator('skills')
    @classmethod
    def normalize_skills(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return v
        return clean_skill_names(v)


# 3. 狀態轉換
class MissionStatusUpdate(BaseModel):
    status: MissionStatus


# 4. 檢舉任務
class MissionReportCreate(BaseModel):
    reason: str = Field(..., max_length=2000)

    @field_validator('reason')
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('請填寫檢舉原因')
        return v

class MissionReportOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    report_id: str
    mission_id: str
    reporter_id: str
    reason: str
    status: str
    created_at: Optional[datetime] = None


# 5. 回傳給前端的任務資料 (Output)
class MissionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    mission_id: str
    title: str
    description: str
    category: str
    budget_min: Optional[float] = None
    budget_max: Optional[float] = None
    budget_type: Optional[str] = None
    currency: Optional[str] = None
    deadline: Optional[date] = None
    status: str
    is_remote: Optional[bool] = None
    is_urgent: Optional[bool] = None
    location: Optional[str] = None
    experience_level: Optional[str] = None
    client_id: str
    assigned_freelance_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # (重要) 巢狀回傳客戶與技能
    client: Optional[UserSummary] = None
    skills: List[MissionSkillOut] = []

    # 由 Repository 計算後填入
    applications_count: int = 0

# 單一任務詳情多了檢舉旗標
class MissionDetailOut(MissionOut):
    is_reported: bool = False

class MissionListOut(BaseModel):
    missions: List[MissionOut]
    pagination: Pagination

class MissionStatsOut(BaseModel):
    total: int
    by_status: dict
    reported: int
    average_budget_max: Optional[float] = None
