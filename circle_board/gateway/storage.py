# circle_board/gateway/storage.py
import logging
import os
from pathlib import Path, PurePosixPath
from urllib.parse import quote

from .collections import CONSTRAINT_VIOLATION, DUPLICATE_KEY, GatewayError

logger = logging.getLogger(__name__)


class ObjectStorage:
    """
    バケット単位でファイルを置き、公開 URL を返すだけのオブジェクトストレージ。
    実体は root 配下のディレクトリで、main.py が /storage に静的配信している。
    """

    def __init__(self, root: str, public_base_url: str):
        self.root = Path(root)
        self.public_base_url = public_base_url.rstrip("/")
        os.makedirs(self.root, exist_ok=True)

    def _resolve(self, bucket: str, path: str) -> Path:
        parts = PurePosixPath(path).parts
        if not bucket or not parts or ".." in parts or PurePosixPath(path).is_absolute():
            raise GatewayError(f"invalid object path: {bucket}/{path}", CONSTRAINT_VIOLATION)
        return self.root.joinpath(bucket, *parts)

    def upload(
        self,
        bucket: str,
        path: str,
        data: bytes,
        content_type: str | None = None,
        upsert: bool = False,
    ) -> str:
        """bucket/path に保存して、保存したパスを返す"""
        target = self._resolve(bucket, path)
        if target.exists() and not upsert:
            raise GatewayError("The resource already exists", DUPLICATE_KEY)

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            logger.warning("upload failed: %s/%s (%s)", bucket, path, e)
            raise GatewayError(str(e)) from e

        logger.info("uploaded %s/%s (%d bytes, %s)", bucket, path, len(data), content_type)
        return path

    def public_url(self, bucket: str, path: str) -> str:
        self._resolve(bucket, path)
        return f"{self.public_base_url}/storage/{quote(bucket)}/{quote(path)}"

    def exists(self, bucket: str, path: str) -> bool:
        return self._resolve(bucket, path).is_file()
