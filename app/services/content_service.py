# app/services/content_service.py

import logging
import math
import os
import uuid
from pathlib import Path
from typing import List, Optional

import aiofiles
from fastapi import UploadFile
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import transactional
from app.core.exceptions import NotFound, Forbidden, ValidationError
from app.models.content import POST_TYPES
from app.models.user import User, UserRoleEnum
from app.repositories.content_repo import ContentRepository
from app.repositories.profile_repo import ProfileRepository
from app.repositories.skill_repo import SkillRepository
from app.repositories.user_repo import UserRepository
from app.schemas.common_schema import Pagination
from app.schemas.content_schema import (
    PostOut, PostListOut, LikeResult, CommentResult, CommentOut, ShareResult, PublicProfileOut
)

logger = logging.getLogger(__name__)

# --- 檔案上傳設定 ---
UPLOAD_URL_PREFIX = "/uploads/"
ALLOWED_MIME_TYPES = {
    "image/jpeg", "image/png", "image/gif", "image/webp",
    "video/mp4", "video/webm", "video/ogg",
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "text/plain",
}
MIN_CONTENT_LENGTH = 10
PUBLIC_PORTFOLIO_LIMIT = 6
PUBLIC_RECENT_POSTS = 3


def _to_post_out(row: tuple) -> PostOut:
    post, likes, comments, shares, is_liked = row
    return PostOut.model_validate(post).model_copy(update={
        "likes_count": likes,
        "comments_count": comments,
        "shares_count": shares,
        "is_liked": bool(is_liked),
    })


class ContentService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = ContentRepository(db)
        self.user_repo = UserRepository(db)
        self.profile_repo = ProfileRepository(db)
        self.skill_repo = SkillRepository(db)

    async def _get_post_or_404(self, post_id: str):
        post = await self.repo.get_post_by_id(post_id)
        if not post or post.status != 'published':
            raise NotFound("貼文不存在")
        return post

    # --- 檔案處理 ---
    def _validate_files(self, files: List[UploadFile]) -> None:
        if len(files) > settings.MAX_UPLOAD_FILES:
            raise ValidationError(f"最多只能上傳 {settings.MAX_UPLOAD_FILES} 個檔案")
        for file in files:
            if file.content_type not in ALLOWED_MIME_TYPES:
                raise ValidationError(f"不支援的檔案格式: {file.content_type}")

    async def _save_upload_file(self, file: UploadFile) -> dict:
        """
        寫入 UPLOAD_DIR，回傳檔案描述 {name, url, type, size}
        """
        content = await file.read()
        max_bytes = settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024
        if len(content) > max_bytes:
            raise ValidationError(f"檔案 {file.filename} 超過 {settings.MAX_UPLOAD_SIZE_MB}MB 上限")

        file_extension = Path(file.filename or "").suffix.lower()
        filename = f"{uuid.uuid4()}{file_extension}"
        upload_dir = Path(settings.UPLOAD_DIR)
        os.makedirs(upload_dir, exist_ok=True)

        async with aiofiles.open(upload_dir / filename, 'wb') as f:
            await f.write(content)

        return {
            "name": file.filename or filename,
            "url": f"{UPLOAD_URL_PREFIX}{filename}",
            "type": file.content_type,
            "size": len(content),
        }

    def _remove_uploaded_files(self, saved: List[dict]) -> None:
        for info in saved:
            path = Path(settings.UPLOAD_DIR) / info["url"][len(UPLOAD_URL_PREFIX):]
            try:
                if path.exists():
                    os.remove(path)
            except OSError as e:
                logger.error(f"無法刪除上傳檔案 {path}: {e}")

    # --- 貼文 ---
    async def list_posts(self, viewer: User, page: int = 1, limit: int = 10) -> PostListOut:
        if page < 1:
            raise ValidationError("page 必須大於等於 1")
        if limit < 1 or limit > 100:
            raise ValidationError("limit 必須介於 1 到 100")

        rows, total = await self.repo.list_published_posts(viewer.user_id, page, limit)
        return PostListOut(
            posts=[_to_post_out(row) for row in rows],
            pagination=Pagination(
                current_page=page,
                total_items=total,
                total_pages=math.ceil(total / limit) if total else 0,
                items_per_page=limit,
            ),
        )

    async def create_post(
        self,
        author: User,
        content: str,
        post_type: str = 'text',
        is_urgent: bool = False,
        project_title: Optional[str] = None,
        project_description: Optional[str] = None,
        project_technologies: Optional[str] = None,
        project_budget: Optional[str] = None,
        project_duration: Optional[str] = None,
        files: Optional[List[UploadFile]] = None,
    ) -> PostOut:
        """
        建立貼文 (可附檔)。
        檔案先寫入磁碟；若之後資料庫交易失敗，已寫入的檔案會被刪除
        """
        content = (content or "").strip()
        if len(content) < MIN_CONTENT_LENGTH:
            raise ValidationError(f"內容至少需要 {MIN_CONTENT_LENGTH} 個字元")
        if post_type not in POST_TYPES:
            raise ValidationError(f"不支援的貼文類型: {post_type}")

        project_data = None
        if post_type == 'project':
            if not (project_title or "").strip() or not (project_description or "").strip():
                raise ValidationError("專案貼文需要標題與描述")
            project_data = {
                "title": project_title.strip(),
                "description": project_description.strip(),
                "technologies": [t.strip() for t in (project_technologies or "").split(",") if t.strip()],
                "budget": project_budget,
                "duration": project_duration,
            }

        files = [f for f in (files or []) if f is not None and f.filename]
        self._validate_files(files)

        saved = []
        try:
            for file in files:
                saved.append(await self._save_upload_file(file))

            async with transactional(self.db):
                post_id = await self.repo.create_post({
                    "user_id": author.user_id,
                    "content_text": content,
                    "files": saved,
                    "project_data": project_data,
                    "post_type": post_type,
                    "is_urgent": is_urgent,
                    "status": 'published',
                })
        except Exception:
            self._remove_uploaded_files(saved)
            raise

        logger.info(f"新貼文: {post_id} (author={author.user_id}, files={len(saved)})")
        row = await self.repo.get_post_with_counts(post_id, author.user_id)
        return _to_post_out(row)

    async def delete_post(self, post_id: str, user: User) -> None:
        post = await self.repo.get_post_by_id(post_id)
        if not post:
            raise NotFound("貼文不存在")
        if post.user_id != user.user_id and user.role != UserRoleEnum.admin:
            logger.warning(f"使用者 {user.user_id} 嘗試刪除他人的貼文 {post_id}")
            raise Forbidden("你沒有權限刪除此貼文")

        saved = list(post.files or [])
        async with transactional(self.db):
            await self.repo.delete_post(post)

        self._remove_uploaded_files(saved)
        logger.info(f"貼文已刪除: {post_id}")

    # --- 互動 ---
    async def toggle_like(self, post_id: str, user: User) -> LikeResult:
        """
        按讚 / 取消讚。
        重新計算讚數失敗時只記錄錯誤，likes_count 回傳 None
        """
        await self._get_post_or_404(post_id)

        async with transactional(self.db):
            like = await self.repo.get_like(post_id, user.user_id)
            if like:
                await self.repo.remove_like(like)
                is_liked = False
            else:
                await self.repo.add_like(post_id, user.user_id)
                is_liked = True

        try:
            likes_count = await self.repo.count_likes(post_id)
        except SQLAlchemyError:
            logger.exception(f"重新計算貼文 {post_id} 讚數失敗")
            likes_count = None

        return LikeResult(is_liked=is_liked, likes_count=likes_count)

    async def add_comment(self, post_id: str, user: User, content: str) -> CommentResult:
        await self._get_post_or_404(post_id)

        async with transactional(self.db):
            comment_id = await self.repo.add_comment(post_id, user.user_id, content)

        comment = await self.repo.get_comment(comment_id)
        return CommentResult(
            comment=CommentOut.model_validate(comment),
            comments_count=await self.repo.count_comments(post_id),
        )

    async def share_post(self, post_id: str, user: User) -> ShareResult:
        """同一使用者重複分享不會重複計算"""
        await self._get_post_or_404(post_id)

        if not await self.repo.get_share(post_id, user.user_id):
            try:
                async with transactional(self.db):
                    await self.repo.add_share(post_id, user.user_id)
            except IntegrityError:
                # 同一使用者同時分享兩次：唯一鍵擋下，沿用已存在的那筆
                logger.info(f"重複分享被唯一鍵擋下: post={post_id} user={user.user_id}")

        return ShareResult(shares_count=await self.repo.count_shares(post_id))

    # --- 公開個人頁 ---
    async def get_public_profile(self, user_id: str, viewer: User) -> PublicProfileOut:
        user = await self.user_repo.get_user_with_profile(user_id)
        if not user or not user.is_active:
            raise NotFound("使用者不存在")

        skills = []
        portfolio = []
        if user.role == UserRoleEnum.freelance:
            skills = await self.skill_repo.get_user_skills(user_id)
            portfolio = await self.profile_repo.get_portfolio(user_id, limit=PUBLIC_PORTFOLIO_LIMIT)

        rows, _ = await self.repo.list_published_posts(
            viewer.user_id, page=1, limit=PUBLIC_RECENT_POSTS, author_id=user_id, urgent_first=False
        )
        return PublicProfileOut(
            user=user,
            profile=user.freelance_profile,
            skills=skills,
            portfolio=portfolio,
            recent_posts=[_to_post_out(row) for row in rows],
        )
