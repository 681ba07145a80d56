# app/routers/content_router.py

from fastapi import APIRouter, Depends, status, UploadFile, File, Form
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from app.core.database import get_db
from app.core.security import get_current_user
from app.models.user import User
from app.services.content_service import ContentService
from app.schemas.common_schema import ApiResponse
from app.schemas.content_schema import (
    PostOut, PostListOut, CommentCreate, CommentResult, LikeResult, ShareResult, PublicProfileOut
)

router = APIRouter(
    prefix="/content",
    tags=["Content"],
    dependencies=[Depends(get_current_user)]
)

@router.get("/posts", response_model=ApiResponse[PostListOut])
async def list_posts(
    page: int = 1,
    limit: int = 10,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    動態牆：已發佈的貼文 (緊急的在前，其次新到舊)
    """
    service = ContentService(db)
    return {"success": True, "data": await service.list_posts(current_user, page=page, limit=limit)}

@router.post("/posts", response_model=ApiResponse[PostOut], status_code=status.HTTP_201_CREATED)
async def create_post(
    # (重要) 由於可附檔，所有欄位都必須來自 Form
    content: str = Form(""),
    post_type: str = Form("text", alias="type"),
    is_urgent: bool = Form(False),
    project_title: Optional[str] = Form(None),
    project_description: Optional[str] = Form(None),
    project_technologies: Optional[str] = Form(None), # 以逗號分隔
    project_budget: Optional[str] = Form(None),
    project_duration: Optional[str] = Form(None),
    files: Optional[List[UploadFile]] = File(None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    發佈貼文 (form-data)。

    - 內容至少 10 個字元。
    - 最多 5 個檔案，單檔上限 50MB (圖片 / 影片 / PDF / Word / 純文字)。
    """
    service = ContentService(db)
    post = await service.create_post(
        author=current_user,
        content=content,
        post_type=post_type,
        is_urgent=is_urgent,
        project_title=project_title,
        project_description=project_description,
        project_technologies=project_technologies,
        project_budget=project_budget,
        project_duration=project_duration,
        files=files,
    )
    return {"success": True, "message": "貼文已發佈", "data": post}

@router.delete("/posts/{post_id}", response_model=ApiResponse[None])
async def delete_post(
    post_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    service = ContentService(db)
    await service.delete_post(post_id, current_user)
    return {"success": True, "message": "貼文已刪除"}

@router.post("/posts/{post_id}/like", response_model=ApiResponse[LikeResult])
async def toggle_like(
    post_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    按讚 / 取消讚 (切換)
    """
    service = ContentService(db)
    return {"success": True, "data": await service.toggle_like(post_id, current_user)}

@router.post("/posts/{post_id}/comment", response_model=ApiResponse[CommentResult], status_code=status.HTTP_201_CREATED)
async def add_comment(
    post_id: str,
    comment_data: CommentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    service = ContentService(db)
    result = await service.add_comment(post_id, current_user, comment_data.content)
    return {"success": True, "message": "留言已送出", "data": result}

@router.post("/posts/{post_id}/share", response_model=ApiResponse[ShareResult])
async def share_post(
    post_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    service = ContentService(db)
    return {"success": True, "data": await service.share_post(post_id, current_user)}

@router.get("/users/{user_id}/profile", response_model=ApiResponse[PublicProfileOut])
async def get_public_profile(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    公開個人頁：基本資料、(工作者) 技能與作品集、最近 3 篇貼文
    """
    service = ContentService(db)
    return {"success": True, "data": await service.get_public_profile(user_id, current_user)}
