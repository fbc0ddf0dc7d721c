# circle_board/api/deps.py

from collections.abc import Generator

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ..config import settings
from ..db import SessionLocal
from ..gateway import AuthService, AuthSessionInfo, ObjectStorage, SqlCollectionGateway

security = HTTPBearer(auto_error=False)

# アプリ全体で 1 つ
gateway = SqlCollectionGateway(SessionLocal)
storage = ObjectStorage(settings.storage_dir, settings.public_base_url)
auth_service = AuthService(SessionLocal)


def get_db_dep() -> Generator[Session, None, None]:
    """
    FastAPI の Depends で使う DB セッション依存関数。
    エンドポイント側では `db: Session = Depends(get_db_dep)` で利用。
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_gateway() -> SqlCollectionGateway:
    return gateway


def get_storage() -> ObjectStorage:
    return storage


def get_auth() -> AuthService:
    return auth_service


def get_current_session(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    auth: AuthService = Depends(get_auth),
) -> AuthSessionInfo:
    """Authorization: Bearer <token> から現在のセッションを得る。無ければ 401"""
    if credentials is None:
        raise HTTPException(status_code=401, detail="ログインしてください")
    session = auth.get_session(credentials.credentials)
    if session is None:
        raise HTTPException(status_code=401, detail="セッションが無効です")
    return session


def get_member_id(session: AuthSessionInfo = Depends(get_current_session)) -> str:
    return session.user_id
