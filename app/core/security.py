# app/core/security.py
# 負責密碼雜湊、JWT 權杖的產生與驗證，以及角色守衛
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from passlib.context import CryptContext
from jose import JWTError, jwt
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import Unauthenticated, AccountDisabled, InsufficientPermissions
from app.schemas.user_schema import TokenData
from app.repositories.user_repo import UserRepository
from app.models.user import User, UserRoleEnum

logger = logging.getLogger(__name__)

# 1. 密碼雜湊設定 (Bcrypt)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# 2. (重要) 定義 Token 從哪裡來 (Authorization Header)
# auto_error=False：缺少 Header 時改由我們自己拋出 Unauthenticated，維持統一的錯誤格式
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """驗證明文密碼是否與雜湊值相符"""
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    """產生密碼的雜湊值"""
    return pwd_context.hash(password)

# 3. JWT 權杖產生與驗證
def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    根據傳入的 data (sub / user_id / role) 產生 JWT access token
    """
    to_encode = data.copy() # 避免修改原始資料
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode.update({"exp": expire})

    encoded_jwt = jwt.encode(
        to_encode,
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM
    )
    return encoded_jwt

def verify_access_token(token: str) -> TokenData | None:
    """
    驗證 JWT (簽章 + 到期時間)，回傳 TokenData 或 None
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError:
        return None

    user_id = payload.get("user_id")
    role = payload.get("role")
    if user_id is None or role is None:
        return None

    return TokenData(user_id=user_id, role=role)

async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    FastAPI 依賴項：驗證 Token 並回傳 User Model
    """
    if not token:
        logger.warning("請求缺少 Bearer Token")
        raise Unauthenticated("缺少存取權杖")

    token_data = verify_access_token(token)
    if token_data is None:
        logger.warning("Token 無效或已過期")
        raise Unauthenticated("權杖無效或已過期")

    user_repo = UserRepository(db)
    user = await user_repo.get_user_by_id(user_id=token_data.user_id)

    if user is None:
        logger.warning(f"Token 對應的使用者不存在: {token_data.user_id}")
        raise Unauthenticated()

    if not user.is_active:
        logger.warning(f"停權帳號嘗試存取: {user.user_id}")
        raise AccountDisabled()

    return user

def require_roles(*roles: UserRoleEnum):
    """
    角色守衛 (Dependency Factory)
    用法：current_user: User = Depends(require_roles(UserRoleEnum.client, UserRoleEnum.admin))
    """
    allowed = {UserRoleEnum(r) for r in roles}

    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            logger.warning(
                f"角色不符: user={current_user.user_id} role={current_user.role.value} "
                f"需要={[r.value for r in allowed]}"
            )
            raise InsufficientPermissions()
        return current_user

    return role_checker
