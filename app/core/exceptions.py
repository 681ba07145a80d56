# app/core/exceptions.py
# 業務錯誤分類：Service 層直接 raise，main.py 的 handler 統一轉成 JSON 信封
from fastapi import HTTPException, status


class AppError(HTTPException):
    """所有業務錯誤的基底 (仍是 HTTPException，FastAPI 會自動處理)"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "ERROR"
    default_detail = "發生錯誤"

    def __init__(self, detail: str | None = None, headers: dict | None = None):
        super().__init__(
            status_code=self.status_code,
            detail=detail or self.default_detail,
            headers=headers,
        )


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"
    default_detail = "輸入資料不正確"


class Unauthenticated(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHENTICATED"
    default_detail = "無法驗證憑證"

    def __init__(self, detail: str | None = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class AccountDisabled(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "ACCOUNT_DISABLED"
    default_detail = "此帳號已被停權"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"
    default_detail = "你沒有權限執行此操作"


class InsufficientPermissions(Forbidden):
    code = "INSUFFICIENT_PERMISSIONS"
    default_detail = "你的角色無法使用此功能"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    default_detail = "資源不存在"


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"
    default_detail = "資料重複"


class InvalidOperation(AppError):
    """請求格式正確，但違反狀態機的前置條件"""
    status_code = status.HTTP_400_BAD_REQUEST
    code = "INVALID_OPERATION"
    default_detail = "目前狀態無法執行此操作"


class MissionClosed(InvalidOperation):
    code = "MISSION_CLOSED"
    default_detail = "此任務目前未開放應徵"


class PersistenceTimeout(AppError):
    status_code = status.HTTP_504_GATEWAY_TIMEOUT
    code = "TIMEOUT"
    default_detail = "資料庫回應逾時"


class Unexpected(AppError):
    code = "UNEXPECTED"
    default_detail = "伺服器發生未預期的錯誤"
