# circle_board/gateway/auth.py
"""認証：メール + パスワードでの登録・ログイン、JWT の発行/検証、ログアウト"""
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

import jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from ..config import settings
from ..db import SessionLocal
from ..models import AuthSession, AuthUser
from .collections import GatewayError

logger = logging.getLogger(__name__)

# bcrypt のバージョン差異を避けるため pbkdf2_sha256 のみ
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

JWT_ALGORITHM = "HS256"

INVALID_CREDENTIALS = "invalid_credentials"
USER_ALREADY_EXISTS = "user_already_exists"
VALIDATION_FAILED = "validation_failed"


@dataclass(frozen=True)
class AuthSessionInfo:
    access_token: str
    user_id: str
    email: str
    expires_at: datetime


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class AuthService:
    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        secret: str | None = None,
        expire_days: int | None = None,
    ):
        self._session_factory = session_factory
        self._secret = secret or settings.jwt_secret
        self._expire_days = expire_days if expire_days is not None else settings.jwt_expire_days

    def _require(self, email: str, password: str) -> str:
        email = _normalize_email(email)
        if not email or not password:
            raise GatewayError("メールアドレスとパスワードを入力してください", VALIDATION_FAILED)
        return email

    def sign_up(self, email: str, password: str) -> dict:
        email = self._require(email, password)
        db = self._session_factory()
        try:
            if db.query(AuthUser).filter(AuthUser.email == email).first():
                raise GatewayError("User already registered", USER_ALREADY_EXISTS)
            user = AuthUser(
                id=str(uuid.uuid4()),
                email=email,
                password_hash=pwd_context.hash(password),
            )
            db.add(user)
            db.commit()
            logger.info("signed up %s (%s)", email, user.id)
            return {"id": user.id, "email": user.email}
        finally:
            db.close()

    def sign_in(self, email: str, password: str) -> AuthSessionInfo:
        email = self._require(email, password)
        db = self._session_factory()
        try:
            user = db.query(AuthUser).filter(AuthUser.email == email).first()
            if not user or not pwd_context.verify(password, user.password_hash):
                logger.info("sign in rejected for %s", email)
                raise GatewayError("Invalid login credentials", INVALID_CREDENTIALS)

            jti = str(uuid.uuid4())
            expires_at = datetime.utcnow() + timedelta(days=self._expire_days)
            db.add(AuthSession(id=jti, user_id=user.id, expires_at=expires_at))
            db.commit()

            token = jwt.encode(
                {"sub": user.id, "email": user.email, "jti": jti, "exp": expires_at},
                self._secret,
                algorithm=JWT_ALGORITHM,
            )
            logger.info("signed in %s", email)
            return AuthSessionInfo(
                access_token=token,
                user_id=user.id,
                email=user.email,
                expires_at=expires_at,
            )
        finally:
            db.close()

    def _decode(self, access_token: str) -> dict | None:
        try:
            return jwt.decode(access_token, self._secret, algorithms=[JWT_ALGORITHM])
        except jwt.InvalidTokenError as e:
            logger.debug("token rejected: %s", e)
            return None

    def get_session(self, access_token: str | None) -> AuthSessionInfo | None:
        """有効なセッションがあれば返す。期限切れ・ログアウト済みは None"""
        if not access_token:
            return None
        payload = self._decode(access_token)
        if not payload:
            return None

        db = self._session_factory()
        try:
            row = db.get(AuthSession, payload.get("jti"))
            if not row or row.revoked_at is not None or row.user_id != payload.get("sub"):
                return None
            user = db.get(AuthUser, row.user_id)
            if not user:
                return None
            return AuthSessionInfo(
                access_token=access_token,
                user_id=user.id,
                email=user.email,
                expires_at=row.expires_at,
            )
        finally:
            db.close()

    def sign_out(self, access_token: str | None) -> None:
        payload = self._decode(access_token) if access_token else None
        if not payload:
            return
        db = self._session_factory()
        try:
            row = db.get(AuthSession, payload.get("jti"))
            if row and row.revoked_at is None:
                row.revoked_at = datetime.utcnow()
                db.commit()
                logger.info("signed out %s", payload.get("email"))
        finally:
            db.close()
