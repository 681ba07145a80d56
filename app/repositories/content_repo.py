# app/repositories/content_repo.py
# 動態牆的資料庫操作 (貼文 / 按讚 / 留言 / 分享)
import uuid
from typing import List, Optional, Tuple
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.content import Post, PostLike, PostComment, PostShare

class ContentRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _count_column(model, label: str):
        """每篇貼文的互動數 (correlated scalar subquery)"""
        return (
            select(func.count())
            .select_from(model)
            .where(model.post_id == Post.post_id)
            .correlate(Post)
            .scalar_subquery()
            .label(label)
        )

    def _post_with_counts(self, viewer_id: Optional[str]):
        is_liked = (
            select(PostLike.like_id)
            .where(PostLike.post_id == Post.post_id, PostLike.user_id == viewer_id)
            .correlate(Post)
            .exists()
            .label("is_liked")
        )
        return select(
            Post,
            self._count_column(PostLike, "likes_count"),
            self._count_column(PostComment, "comments_count"),
            self._count_column(PostShare, "shares_count"),
            is_liked,
        ).execution_options(populate_existing=True)

    async def list_published_posts(
        self, viewer_id: Optional[str], page: int, limit: int,
        author_id: Optional[str] = None, urgent_first: bool = True
    ) -> Tuple[List[tuple], int]:
        """
        已發佈的貼文，依建立時間新到舊 (urgent_first 時緊急的排最前面)
        回傳 ([(post, likes, comments, shares, is_liked)], 總筆數)
        """
        conditions = [Post.status == 'published']
        if author_id:
            conditions.append(Post.user_id == author_id)

        total = (await self.db.execute(
            select(func.count(Post.post_id)).where(*conditions)
        )).scalar_one()

        ordering = [Post.created_at.desc(), Post.post_id]
        if urgent_first:
            ordering.insert(0, Post.is_urgent.desc())

        stmt = (
            self._post_with_counts(viewer_id)
            .where(*conditions)
            .order_by(*ordering)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return [tuple(row) for row in result.all()], total

    async def get_post_with_counts(self, post_id: str, viewer_id: Optional[str]) -> Optional[tuple]:
        stmt = self._post_with_counts(viewer_id).where(Post.post_id == post_id)
        result = await self.db.execute(stmt)
        row = result.first()
        return tuple(row) if row else None

    async def get_post_by_id(self, post_id: str) -> Optional[Post]:
        stmt = select(Post).where(Post.post_id == post_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def create_post(self, post_data: dict) -> str:
        post_id = str(uuid.uuid4())
        self.db.add(Post(post_id=post_id, **post_data))
        await self.db.flush()
        return post_id

    async def delete_post(self, post: Post) -> None:
        """
        刪除貼文 (ORM cascade 會一併刪除按讚、留言、分享)
        """
        await self.db.delete(post)
        await self.db.flush()

    # --- 按讚 ---
    async def get_like(self, post_id: str, user_id: str) -> Optional[PostLike]:
        stmt = select(PostLike).where(PostLike.post_id == post_id, PostLike.user_id == user_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def add_like(self, post_id: str, user_id: str) -> None:
        self.db.add(PostLike(post_id=post_id, user_id=user_id))
        await self.db.flush()

    async def remove_like(self, like: PostLike) -> None:
        await self.db.delete(like)
        await self.db.flush()

    async def count_likes(self, post_id: str) -> int:
        stmt = select(func.count(PostLike.like_id)).where(PostLike.post_id == post_id)
        return (await self.db.execute(stmt)).scalar_one()

    # --- 留言 ---
    async def add_comment(self, post_id: str, user_id: str, content: str) -> str:
        comment_id = str(uuid.uuid4())
        self.db.add(PostComment(comment_id=comment_id, post_id=post_id, user_id=user_id, content=content))
        await self.db.flush()
        return comment_id

    async def get_comment(self, comment_id: str) -> Optional[PostComment]:
        stmt = (
            select(PostComment)
            .where(PostComment.comment_id == comment_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def count_comments(self, post_id: str) -> int:
        stmt = select(func.count(PostComment.comment_id)).where(PostComment.post_id == post_id)
        return (await self.db.execute(stmt)).scalar_one()

    # --- 分享 ---
    async def get_share(self, post_id: str, user_id: str) -> Optional[PostShare]:
        stmt = select(PostShare).where(PostShare.post_id == post_id, PostShare.user_id == user_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def add_share(self, post_id: str, user_id: str) -> None:
        self.db.add(PostShare(post_id=post_id, user_id=user_id))
        await self.db.flush()

    async def count_shares(self, post_id: str) -> int:
        stmt = select(func.count(PostShare.share_id)).where(PostShare.post_id == post_id)
        return (await self.db.execute(stmt)).scalar_one()
