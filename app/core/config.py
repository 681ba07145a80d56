# app/core/config.py
# 應用程式設定 (例如資料庫連線字串、JWT 秘鑰、上傳限制等)
from typing import List
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # 資料庫設定
    DATABASE_URL: str
    DB_ECHO: bool = False
    DB_POOL_SIZE: int = 10
    DB_POOL_TIMEOUT: int = 30
    # 單一 SQL 呼叫的時間上限 (秒)
    DB_QUERY_TIMEOUT_SECONDS: float = 10.0
    # 啟動時自動建立資料表 (僅開發用)
    DB_AUTO_CREATE_TABLES: bool = False

    # JWT 設定
    JWT_SECRET_KEY: str
    # JWT 演算法
    JWT_ALGORITHM: str = "HS256"
    # 存取令牌過期時間（分鐘），預設 24 小時
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440

    # production / development (development 才會回傳原始錯誤訊息)
    ENVIRONMENT: str = "production"

    CORS_ORIGINS: List[str] = ["http://localhost:8100", "http://localhost:4200"]

    # 檔案上傳
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_SIZE_MB: int = 50
    MAX_UPLOAD_FILES: int = 5

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

    # 環境變數檔案
    class Config:
        env_file = ".env"

# 建立設定實例
settings = Settings()
