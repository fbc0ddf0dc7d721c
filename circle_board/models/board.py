# circle_board/models/board.py
from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime

from ..db import Base

# 募集の種類
POST_TYPES = ("正規", "企画", "考え中")


class BandPost(Base):
    __tablename__ = "band_posts"

    # id はゲートウェイ側で採番（クライアントからは渡さない）
    id = Column(Integer, primary_key=True, autoincrement=True)
    profile_id = Column(String, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)

    post_type = Column(String, nullable=False, default=POST_TYPES[0])
    theme = Column(String, nullable=False)
    members = Column(Text, nullable=True)
    target_parts = Column(String, nullable=False)
    start_period = Column(String, nullable=True)
    extra_remarks = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    author = relationship("Profile")
    likes = relationship(
        "PostLike",
        back_populates="post",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    # 投稿順に並べる
    comments = relationship(
        "PostComment",
        back_populates="post",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="PostComment.id",
    )


class PostLike(Base):
    __tablename__ = "post_likes"

    # (post_id, profile_id) の存在 = いいね済み
    post_id = Column(Integer, ForeignKey("band_posts.id", ondelete="CASCADE"), primary_key=True)
    profile_id = Column(String, ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    post = relationship("BandPost", back_populates="likes")


class PostComment(Base):
    __tablename__ = "post_comments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    post_id = Column(Integer, ForeignKey("band_posts.id", ondelete="CASCADE"), nullable=False)
    profile_id = Column(String, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    post = relationship("BandPost", back_populates="comments")
    author = relationship("Profile")
