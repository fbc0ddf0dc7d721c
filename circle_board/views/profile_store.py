# circle_board/views/profile_store.py
"""
プロフィール一覧 + 編集フォーム。

変更操作のあとは必ず fetch_all() で全件取り直す（ローカルで差分を当てない）。
"""
import logging
import os
import re
import secrets
import time
from collections.abc import Callable
from datetime import datetime
from typing import Optional

from ..config import settings
from ..errors import AuthorizationFailed, CollaboratorError, ValidationFailed
from ..gateway import GatewayError, ObjectStorage, SqlCollectionGateway, Subscription
from ..schemas.profile import ProfileForm
from .filters import ALL_PARTS, visible_profiles

logger = logging.getLogger(__name__)

TABLE = "profiles"

CONFIRM_DELETE_MESSAGE = "本当に削除しますか？"

# 拡張子は英小文字と数字だけ。それ以外は bin
EXT_PATTERN = re.compile(r"[a-z0-9]{1,10}")


class ProfileStoreView:
    def __init__(
        self,
        gateway: SqlCollectionGateway,
        member_id: Optional[str],
        storage: Optional[ObjectStorage] = None,
        confirm: Optional[Callable[[str], bool]] = None,
        use_soft_delete: bool = True,
        authenticated: bool = False,
        avatar_bucket: Optional[str] = None,
    ):
        self.gateway = gateway
        self.member_id = member_id
        self.storage = storage
        # None の場合は呼び出し側で確認済みとみなす
        self.confirm = confirm
        self.use_soft_delete = use_soft_delete
        self.authenticated = authenticated
        self.avatar_bucket = avatar_bucket or settings.avatar_bucket

        self.profiles: list[dict] = []
        self.form = ProfileForm()
        self.my_deleted = False
        self.uploading = False
        self._subscription: Optional[Subscription] = None

    # -----------------------------
    # 内部ヘルパー
    # -----------------------------

    def _call(self, fn, *args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except GatewayError as e:
            logger.warning("profile operation failed [%s]: %s", e.code, e.message)
            raise CollaboratorError(e.message, e.code) from e

    def _require_member(self) -> str:
        if not self.member_id:
            raise AuthorizationFailed("ログインしてください")
        return self.member_id

    def _require_owner(self, profile_id: str) -> str:
        member_id = self._require_member()
        if profile_id != member_id:
            raise AuthorizationFailed("自分のプロフィール以外は操作できません")
        return member_id

    def _confirmed(self, message: str) -> bool:
        return self.confirm is None or bool(self.confirm(message))

    # -----------------------------
    # 取得
    # -----------------------------

    def fetch_all(self) -> list[dict]:
        """全件を更新日時の新しい順で取り直す。失敗時は一覧を変えない"""
        try:
            rows = self.gateway.select(TABLE, order_by="updated_at", descending=True)
        except GatewayError as e:
            logger.error("failed to fetch profiles: %s", e.message)
            return self.profiles

        self.profiles = rows
        mine = self.my_profile()
        self.my_deleted = bool(mine and mine.get("deleted_at") is not None)
        return self.profiles

    def my_profile(self) -> Optional[dict]:
        return next((p for p in self.profiles if p["id"] == self.member_id), None)

    def visible(self, search_generation: str = "", search_part: str = ALL_PARTS) -> list[dict]:
        return visible_profiles(
            self.profiles,
            self.member_id,
            self.my_deleted,
            search_generation,
            search_part,
        )

    # -----------------------------
    # 編集
    # -----------------------------

    def start_edit(self, record: dict) -> ProfileForm:
        if self.authenticated:
            self._require_owner(record.get("id"))
        self.form = ProfileForm.load_from(record)
        return self.form

    def cancel_edit(self) -> None:
        self.form = self.form.reset()

    def save(self) -> dict:
        """フォームの全項目で自分のレコードを upsert する"""
        if not self.form.username.strip():
            raise ValidationFailed("名前を入力してください")
        if self.uploading:
            raise ValidationFailed("画像をアップロード中です")
        member_id = self._require_member()

        record = self.form.to_record(member_id, datetime.utcnow())
        saved = self._call(self.gateway.upsert, TABLE, record)
        logger.info("saved profile %s", member_id)
        self.fetch_all()
        return saved

    # -----------------------------
    # 削除・復元
    # -----------------------------

    def soft_delete(self, profile_id: str) -> bool:
        self._require_owner(profile_id)
        if not self._confirmed(CONFIRM_DELETE_MESSAGE):
            return False
        self._call(
            self.gateway.update,
            TABLE,
            {"deleted_at": datetime.utcnow()},
            {"id": profile_id},
        )
        self.fetch_all()
        return True

    def delete(self, profile_id: str) -> bool:
        """論理削除が有効ならそちら、無効ならレコードごと消す"""
        if self.use_soft_delete:
            return self.soft_delete(profile_id)

        self._require_owner(profile_id)
        if not self._confirmed(CONFIRM_DELETE_MESSAGE):
            return False
        self._call(self.gateway.delete, TABLE, {"id": profile_id})
        self.fetch_all()
        return True

    def restore(self) -> None:
        member_id = self._require_member()
        self._call(self.gateway.update, TABLE, {"deleted_at": None}, {"id": member_id})
        self.fetch_all()

    # -----------------------------
    # アバター
    # -----------------------------

    def upload_avatar(self, filename: str, data: bytes, content_type: Optional[str] = None) -> str:
        """
        画像を置いて公開 URL をフォームに入れる。
        レコードへの反映は次の save() まで行わない。
        """
        if self.storage is None:
            raise CollaboratorError("ストレージが設定されていません")
        member_id = self._require_member()
        if self.uploading:
            raise ValidationFailed("画像をアップロード中です")

        ext = os.path.splitext(filename or "")[1].lstrip(".").lower()
        if not EXT_PATTERN.fullmatch(ext):
            ext = "bin"
        millis = int(time.time() * 1000)
        # 同じミリ秒に 2 回上げても衝突しないよう短い乱数を足す
        path = f"{member_id}/{millis}-{secrets.token_hex(4)}.{ext}"

        self.uploading = True
        try:
            self._call(self.storage.upload, self.avatar_bucket, path, data, content_type)
            url = self._call(self.storage.public_url, self.avatar_bucket, path)
        finally:
            self.uploading = False

        url = f"{url}?t={millis}"
        self.form.avatar_url = url
        return url

    # -----------------------------
    # 変更通知
    # -----------------------------

    def watch(self) -> Subscription:
        """profiles の変更通知を受けるたびに取り直す"""
        if self._subscription is None:
            self._subscription = self.gateway.feed.subscribe(TABLE, lambda event: self.fetch_all())
        return self._subscription

    def unwatch(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
