import logging
from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import get_db
from app.services.auth_service import AuthService
from app.schemas.common_schema import ApiResponse
from app.schemas.user_schema import Token, UserCreate, UserLogin, AuthResult


logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth", # 路由前綴
    tags=["Auth"]    # API 文件分類標籤
)


# 註冊 API 端點
@router.post("/register", response_model=ApiResponse[AuthResult], status_code=status.HTTP_201_CREATED)
async def register_new_user(
    user_data: UserCreate, # Request Body 會被 Pydantic 驗證
    db: AsyncSession = Depends(get_db)
):
    """
    註冊新使用者 (client / freelance)

    - 密碼需至少6碼，且包含英文和數字。
    - 註冊成功直接回傳 token，前端不需再登入一次。
    """
    auth_service = AuthService(db)
    new_user = await auth_service.register_user(user_data)
    access_token = auth_service.create_login_token(new_user)

    return {
        "success": True,
        "message": "註冊成功",
        "data": {"access_token": access_token, "token_type": "bearer", "user": new_user},
    }


@router.post("/login", response_model=ApiResponse[AuthResult])
async def login(
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """
    以 JSON (email / password) 登入
    """
    auth_service = AuthService(db)
    user = await auth_service.authenticate_user(credentials.email, credentials.password)
    access_token = auth_service.create_login_token(user)

    logger.info(f"User logged in: {user.user_id}")
    return {
        "success": True,
        "message": "登入成功",
        "data": {"access_token": access_token, "token_type": "bearer", "user": user},
    }


@router.post("/token", response_model=Token)
async def login_for_access_token(
    # (重要) 使用 OAuth2PasswordRequestForm 會強制 API 只接受 form-data
    # 格式為 username=...&password=... (給 Swagger UI 的 Authorize 按鈕使用)
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db)
):
    """
    提供帳號 (username 欄位傳 email) 和密碼以取得 Access Token
    """
    auth_service = AuthService(db)

    # form_data.username 欄位就是我們的 email
    user = await auth_service.authenticate_user(
        email=form_data.username,
        password=form_data.password
    )

    logger.info(f"User logged in: {user.user_id}")
    access_token = auth_service.create_login_token(user)

    return {"access_token": access_token, "token_type": "bearer"}
