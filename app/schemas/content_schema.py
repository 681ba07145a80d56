# app/schemas/content_schema.py
from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime
from typing import Any, List, Optional

from app.schemas.common_schema import Pagination
from app.schemas.profile_schema import FreelanceProfileOut, PortfolioOut
from app.schemas.skill_schema import UserSkillOut
from app.schemas.user_schema import UserSummary
from app.models.user import UserRoleEnum

# 上傳檔案的描述
class PostFile(BaseModel):
    name: str
    url: str
    type: str
    size: int

class PostOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    post_id: str
    user_id: str
    content_text: Optional[str] = None
    files: List[PostFile] = []
    project_data: Optional[dict[str, Any]] = None
    post_type: str
    is_urgent: bool = False
    status: str
    created_at: Optional[datetime] = None
    author: Optional[UserSummary] = None

    # 由 Repository 計算後填入
    likes_count: int = 0
    comments_count: int = 0
    shares_count: int = 0
    is_liked: bool = False

    @field_validator('files', mode='before')
    @classmethod
    def none_to_list(cls, v):
        return v or []

class PostListOut(BaseModel):
    posts: List[PostOut]
    pagination: Pagination

class CommentCreate(BaseModel):
    content: str = Field(..., max_length=500)

    @field_validator('content')
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('留言不可為空白')
        return v

class CommentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    comment_id: str
    post_id: str
    user_id: str
    content: str
    created_at: Optional[datetime] = None

class LikeResult(BaseModel):
    is_liked: bool
    # 計數失敗時為 None (按讚本身仍然成功)
    likes_count: Optional[int] = None

class CommentResult(BaseModel):
    comment: CommentOut
    comments_count: int

class ShareResult(BaseModel):
    shares_count: int

# --- 公開個人頁 ---
class PublicUserOut(UserSummary):
    role: UserRoleEnum
    bio: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    created_at: Optional[datetime] = None

class PublicProfileOut(BaseModel):
    user: PublicUserOut
    profile: Optional[FreelanceProfileOut] = None
    skills: List[UserSkillOut] = []
    portfolio: List[PortfolioOut] = []
    recent_posts: List[PostOut] = []
