# circle_board/views/identity.py
"""
端末ごとのメンバー ID。

ログイン導入前は、端末ローカルに保存したランダムなトークンを ID として使う。
ログイン後は認証側が発行したユーザー ID が常に優先される。
"""
import json
import logging
import os
import secrets
import string
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from ..config import settings

if TYPE_CHECKING:
    from .auth_gate import AuthGate

logger = logging.getLogger(__name__)

STORAGE_KEY = "my_profile_id"
TOKEN_PREFIX = "user-"
TOKEN_LENGTH = 9
_ALPHABET = string.digits + string.ascii_lowercase  # 36進


def generate_token() -> str:
    return TOKEN_PREFIX + "".join(secrets.choice(_ALPHABET) for _ in range(TOKEN_LENGTH))


class MemoryLocalStorage:
    """テストや一時利用向けのローカルストレージ"""

    def __init__(self, initial: Optional[dict] = None):
        self._data = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)


class FileLocalStorage:
    """JSON ファイル 1 つに key/value を保存するローカルストレージ"""

    def __init__(self, path: str):
        self.path = Path(path)

    def _load(self) -> dict:
        if not self.path.exists():
            return {}
        with self.path.open(encoding="utf-8") as f:
            return json.load(f)

    def _dump(self, data: dict) -> None:
        if self.path.parent != Path("."):
            os.makedirs(self.path.parent, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False)

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._dump(data)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._dump(data)


class LocalIdentity:
    def __init__(self, storage):
        self.storage = storage

    def member_id(self) -> str:
        """保存済みならそれを、なければ生成して保存したものを返す"""
        saved = self.storage.get_item(STORAGE_KEY)
        if saved:
            return saved
        token = generate_token()
        self.storage.set_item(STORAGE_KEY, token)
        logger.info("generated local member id %s", token)
        return token


def local_identity(path: Optional[str] = None) -> LocalIdentity:
    """設定ファイル（identity_file）に保存する LocalIdentity"""
    return LocalIdentity(FileLocalStorage(path or settings.identity_file))


def resolve_member_id(
    auth_gate: Optional["AuthGate"] = None,
    identity: Optional[LocalIdentity] = None,
) -> Optional[str]:
    """ログイン済みならそのユーザー ID、そうでなければ端末ローカルの ID"""
    if auth_gate is not None and auth_gate.is_logged_in:
        return auth_gate.member_id
    if identity is not None:
        return identity.member_id()
    return None
