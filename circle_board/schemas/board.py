# circle_board/schemas/board.py

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, field_validator

from ..models.board import POST_TYPES

PostType = Literal["正規", "企画", "考え中"]


class BoardForm(BaseModel):
    """募集投稿フォームの状態"""

    post_type: PostType = POST_TYPES[0]
    theme: str = ""
    members: str = ""
    target_parts: str = ""
    start_period: str = ""
    extra_remarks: str = ""

    @field_validator("theme", "members", "target_parts", "start_period", "extra_remarks", mode="before")
    @classmethod
    def _none_is_blank(cls, v: Any):
        return "" if v is None else v

    @classmethod
    def load_from(cls, post: dict) -> "BoardForm":
        return cls(**{k: post.get(k) for k in cls.model_fields if k in post})

    def reset(self) -> "BoardForm":
        return type(self)()

    def to_record(self) -> dict:
        return self.model_dump()


class PostAuthor(BaseModel):
    id: str
    username: str
    avatar_url: Optional[str] = None


class PostLikeOut(BaseModel):
    profile_id: str


class PostCommentOut(BaseModel):
    id: int
    post_id: int
    profile_id: str
    content: str
    created_at: datetime
    author: Optional[PostAuthor] = None


class BandPostOut(BaseModel):
    id: int
    profile_id: str
    post_type: str
    theme: str
    members: Optional[str] = None
    target_parts: str
    start_period: Optional[str] = None
    extra_remarks: Optional[str] = None
    created_at: datetime
    author: Optional[PostAuthor] = None
    likes: list[PostLikeOut] = []
    like_count: int = 0
    liked_by_me: bool = False
    # 投稿者本人とコメントした本人にだけ見えるコメント
    comments: list[PostCommentOut] = []


class CommentCreate(BaseModel):
    content: str
