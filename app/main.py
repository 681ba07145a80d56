import logging
import os
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.database import create_all_tables
from app.core.exceptions import Unexpected
from app.routers import (
    auth_router, user_router, skill_router,
    mission_router, application_router,
    profile_router, content_router
)

# --- 匯入所有 Model 檔案 ---
# 都在應用程式啟動時被 SQLAlchemy 註冊。
from app.models import user
from app.models import freelance_profile
from app.models import skill
from app.models import mission
from app.models import application
from app.models import portfolio
from app.models import content


# 設定基礎日誌
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__) # 建立一個 logger 實例


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.DB_AUTO_CREATE_TABLES:
        await create_all_tables()
    logger.info(f"伺服器啟動 (ENVIRONMENT={settings.ENVIRONMENT})")
    yield
    logger.info("伺服器關閉")


app = FastAPI(title="Matrix Freelance API", lifespan=lifespan)

# --- 設定 CORS (跨來源資源共用) ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"], # 允許所有 HTTP 方法
    allow_headers=["*"], # 允許所有 HTTP 標頭
)

# --- 上傳檔案 (靜態) ---
os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")


# --- 錯誤處理：全部轉成 {"success": false, "message", "code"} ---
DEFAULT_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHENTICATED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    504: "TIMEOUT",
}

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    code = getattr(exc, "code", None) or DEFAULT_ERROR_CODES.get(exc.status_code, "ERROR")
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail), "code": code},
        headers=getattr(exc, "headers", None),
    )

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info(f"請求格式錯誤: {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "message": "輸入資料不正確",
            "code": "VALIDATION_ERROR",
            "errors": jsonable_encoder(exc.errors()),
        },
    )

def _unexpected_response(exc: Exception) -> JSONResponse:
    error = Unexpected()
    content = {"success": False, "message": error.detail, "code": error.code}
    if settings.is_development:
        content["error"] = str(exc)
    return JSONResponse(status_code=error.status_code, content=content)

@app.exception_handler(SQLAlchemyError)
async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.exception(f"資料庫錯誤: {request.method} {request.url.path}")
    return _unexpected_response(exc)

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"未預期的錯誤: {request.method} {request.url.path}")
    return _unexpected_response(exc)


# --- 根路徑 ---
@app.get("/")
def read_root():
    return {"success": True, "message": "Backend is running!"}

# --- 載入 API 路由 ---
app.include_router(auth_router.router)
app.include_router(user_router.router)
app.include_router(skill_router.router)
app.include_router(mission_router.router)
app.include_router(application_router.router)
app.include_router(profile_router.router)
app.include_router(content_router.router)
