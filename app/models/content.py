# app/models/content.py
# 動態牆：貼文及其互動 (按讚 / 留言 / 分享)

import uuid
from sqlalchemy import (
    Column, String, Text, JSON, Boolean, CHAR, Enum, ForeignKey, TIMESTAMP, UniqueConstraint, func
)
from sqlalchemy.orm import relationship
from app.core.database import Base

POST_TYPES = ('text', 'image', 'video', 'document', 'project')

class Post(Base):
    __tablename__ = "posts"

    post_id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    content_text = Column(Text)
    # 上傳檔案的描述列表：[{name, url, type, size}]
    files = Column(JSON)
    # post_type == 'project' 時的專案資料
    project_data = Column(JSON)
    post_type = Column(Enum(*POST_TYPES, name="post_type_enum"), default='text')
    is_urgent = Column(Boolean, default=False)
    status = Column(String(20), default='published', index=True)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    author = relationship("User", back_populates="posts", lazy="selectin")

    # 刪除貼文時一併刪除所有互動
    likes = relationship("PostLike", back_populates="post", cascade="all, delete-orphan")
    comments = relationship("PostComment", back_populates="post", cascade="all, delete-orphan")
    shares = relationship("PostShare", back_populates="post", cascade="all, delete-orphan")

class PostLike(Base):
    __tablename__ = "post_likes"
    __table_args__ = (UniqueConstraint("post_id", "user_id", name="uq_post_like"),)

    like_id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    post_id = Column(CHAR(36), ForeignKey("posts.post_id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(TIMESTAMP, server_default=func.now())

    post = relationship("Post", back_populates="likes")

class PostComment(Base):
    __tablename__ = "post_comments"

    comment_id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    post_id = Column(CHAR(36), ForeignKey("posts.post_id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(String(500), nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now())

    post = relationship("Post", back_populates="comments")

class PostShare(Base):
    __tablename__ = "post_shares"
    __table_args__ = (UniqueConstraint("post_id", "user_id", name="uq_post_share"),)

    share_id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    post_id = Column(CHAR(36), ForeignKey("posts.post_id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(TIMESTAMP, server_default=func.now())

    post = relationship("Post", back_populates="shares")
