# app/schemas/user_schema.py
from pydantic import BaseModel, EmailStr, Field, field_validator, ConfigDict
import re
from app.models.user import UserRoleEnum
from typing import Optional
from datetime import datetime

# 登入請求的格式
class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

# Token 回應的格式
class Token(BaseModel):
    access_token: str
    token_type: str

# (可選) Token 內的資料
class TokenData(BaseModel):
    user_id: str
    role: str


# 註冊請求 Body
class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    # 只開放 client / freelance，admin 需由管理工具建立
    role: UserRoleEnum
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    location: Optional[str] = Field(None, max_length=255)
    bio: Optional[str] = None

    @field_validator('password')
    @classmethod
    def validate_password(cls, v: str) -> str:
        """
        驗證密碼是否至少6碼且包含英文和數字
        """
        if not re.search(r'(?=.*[a-zA-Z])(?=.*[0-9])', v):
            raise ValueError('密碼必須包含英文和數字')
        return v

    @field_validator('role')
    @classmethod
    def validate_role(cls, v: UserRoleEnum) -> UserRoleEnum:
        if v == UserRoleEnum.admin:
            raise ValueError('無法自行註冊管理員帳號')
        return v

    @field_validator('first_name', 'last_name')
    @classmethod
    def strip_names(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('姓名不可為空白')
        return v

# 查詢使用者的安全回應 (不含 password_hash)
class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str # 我們在 MySQL 中使用 CHAR(36)，但在 Pydantic 中視為 str
    email: EmailStr
    role: UserRoleEnum
    is_active: bool
    email_verified: Optional[bool] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    created_at: Optional[datetime] = None

# 註冊 / 登入成功後一併回傳 token 與使用者
class AuthResult(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    access_token: str
    token_type: str = "bearer"
    user: UserOut

# 任務、應徵、貼文中顯示的精簡使用者資訊
class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_name: Optional[str] = None
    avatar: Optional[str] = None
