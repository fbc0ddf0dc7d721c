# circle_board/views/board_store.py
"""募集掲示板：投稿の作成/更新/削除、いいね、コメント"""
import logging
from collections.abc import Callable
from typing import Optional

from ..errors import AuthorizationFailed, CollaboratorError, ValidationFailed
from ..gateway import GatewayError, SqlCollectionGateway
from ..schemas.board import BoardForm

logger = logging.getLogger(__name__)

POSTS = "band_posts"
LIKES = "post_likes"
COMMENTS = "post_comments"

POST_INCLUDE = ("author", "likes", "comments", "comments.author")

IDLE = "idle"
EDITING = "editing"


class BoardStoreView:
    def __init__(
        self,
        gateway: SqlCollectionGateway,
        member_id: Optional[str],
        confirm: Optional[Callable[[str], bool]] = None,
    ):
        self.gateway = gateway
        self.member_id = member_id
        self.confirm = confirm

        self.posts: list[dict] = []
        self.form = BoardForm()
        self.editing_post_id: Optional[int] = None
        # 投稿ごとのコメント入力欄
        self.comment_inputs: dict[int, str] = {}

    @property
    def state(self) -> str:
        return EDITING if self.editing_post_id is not None else IDLE

    def _call(self, fn, *args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except GatewayError as e:
            logger.warning("board operation failed [%s]: %s", e.code, e.message)
            raise CollaboratorError(e.message, e.code) from e

    def _require_member(self) -> str:
        if not self.member_id:
            raise AuthorizationFailed("ログインしてください")
        return self.member_id

    # -----------------------------
    # 取得
    # -----------------------------

    def fetch_all(self) -> list[dict]:
        """投稿者・いいね・コメント込みで新しい順に取り直す。失敗時は一覧を変えない"""
        try:
            rows = self.gateway.select(
                POSTS,
                order_by="created_at",
                descending=True,
                include=POST_INCLUDE,
            )
        except GatewayError as e:
            logger.error("failed to fetch posts: %s", e.message)
            return self.posts
        self.posts = rows
        return self.posts

    def find(self, post_id: int) -> Optional[dict]:
        return next((p for p in self.posts if p["id"] == post_id), None)

    def is_liked(self, post: dict) -> bool:
        return any(like["profile_id"] == self.member_id for like in post.get("likes") or [])

    def like_count(self, post: dict) -> int:
        return len(post.get("likes") or [])

    def visible_comments(self, post: dict) -> list[dict]:
        """投稿者本人と、そのコメントを書いた本人にだけ見せる（表示上の絞り込み）"""
        if not self.member_id:
            return []
        if post.get("profile_id") == self.member_id:
            return list(post.get("comments") or [])
        return [c for c in post.get("comments") or [] if c["profile_id"] == self.member_id]

    # -----------------------------
    # 投稿の作成・編集
    # -----------------------------

    def start_edit(self, post: dict) -> BoardForm:
        member_id = self._require_member()
        if post.get("profile_id") != member_id:
            raise AuthorizationFailed("自分の投稿以外は編集できません")
        self.editing_post_id = post["id"]
        self.form = BoardForm.load_from(post)
        return self.form

    def cancel_edit(self) -> None:
        self.form = self.form.reset()
        self.editing_post_id = None

    def save(self) -> int:
        """編集中ならその投稿を更新、そうでなければ新規作成。投稿 id を返す"""
        if not self.form.theme.strip() or not self.form.target_parts.strip():
            raise ValidationFailed("テーマと募集パートは必須です")
        member_id = self._require_member()

        record = self.form.to_record()
        if self.editing_post_id is not None:
            post_id = self.editing_post_id
            updated = self._call(
                self.gateway.update,
                POSTS,
                record,
                {"id": post_id, "profile_id": member_id},
            )
            if updated == 0:
                raise CollaboratorError("更新対象の投稿が見つかりません")
        else:
            record["profile_id"] = member_id
            # 失敗した場合はフォームを残したまま例外を上げる
            post_id = self._call(self.gateway.insert, POSTS, record)["id"]

        logger.info("saved post %s by %s", post_id, member_id)
        self.cancel_edit()
        self.fetch_all()
        return post_id

    def delete(self, post_id: int) -> bool:
        member_id = self._require_member()
        if self.confirm is not None and not self.confirm("この投稿を削除しますか？"):
            return False
        deleted = self._call(self.gateway.delete, POSTS, {"id": post_id, "profile_id": member_id})
        if deleted == 0:
            raise CollaboratorError("削除対象の投稿が見つかりません")
        if self.editing_post_id == post_id:
            self.cancel_edit()
        self.fetch_all()
        return True

    # -----------------------------
    # いいね・コメント
    # -----------------------------

    def toggle_like(self, post_id: int, already_liked: bool) -> None:
        """
        いいね済みなら取り消し、未いいねなら追加する。
        追加は「無ければ入れる」なので二重送信しても 1 件のまま。
        """
        member_id = self._require_member()
        key = {"post_id": post_id, "profile_id": member_id}
        try:
            if already_liked:
                self.gateway.delete(LIKES, key)
            else:
                self.gateway.upsert(LIKES, key, ignore_duplicates=True)
        except GatewayError as e:
            if not e.is_duplicate_key:
                logger.warning("like toggle failed [%s]: %s", e.code, e.message)
                raise CollaboratorError(e.message, e.code) from e
            logger.info("like (%s, %s) already exists", post_id, member_id)
        finally:
            self.fetch_all()

    def comment(self, post_id: int, content: Optional[str] = None) -> dict:
        text = content if content is not None else self.comment_inputs.get(post_id, "")
        if not text.strip():
            raise ValidationFailed("コメントを入力してください")
        member_id = self._require_member()

        saved = self._call(
            self.gateway.insert,
            COMMENTS,
            {"post_id": post_id, "profile_id": member_id, "content": text},
        )
        self.comment_inputs.pop(post_id, None)
        self.fetch_all()
        return saved
