# circle_board/config.py

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # DB
    database_url: str = "sqlite:///./circle_board.db"

    # 認証（JWT）
    jwt_secret: str = "change-me"
    jwt_expire_days: int = 30

    # アバター等のファイル置き場
    storage_dir: str = "./storage"
    public_base_url: str = "http://127.0.0.1:8000"
    avatar_bucket: str = "avatars"

    # ログイン導入前の端末ローカル ID 保存先
    identity_file: str = "./.circle_board_identity.json"

    # False にすると削除は物理削除（初期リビジョンの挙動）
    profile_soft_delete: bool = True

    log_level: str = "INFO"
    debug: bool = True

    class Config:
        env_file = ".env"


settings = Settings()
