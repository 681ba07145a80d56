# app/schemas/common_schema.py
# 所有 API 共用的 JSON 信封格式
from typing import Generic, Optional, TypeVar
from pydantic import BaseModel

T = TypeVar("T")

class ApiResponse(BaseModel, Generic[T]):
    """
    成功回應：{"success": true, "message": "...", "data": ...}
    失敗回應由 main.py 的 exception handler 統一產生
    """
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None

class Pagination(BaseModel):
    current_page: int
    total_items: int
    total_pages: int
    items_per_page: int
