# circle_board/models/auth.py
from sqlalchemy import Column, String, DateTime, ForeignKey
from datetime import datetime

from ..db import Base


class AuthUser(Base):
    """認証側だけが持つユーザー。プロフィールとは id を共有する"""

    __tablename__ = "auth_users"

    id = Column(String, primary_key=True)
    email = Column(String, nullable=False, unique=True, index=True)
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class AuthSession(Base):
    """発行済みトークン（jti）。ログアウトで revoked_at を埋める"""

    __tablename__ = "auth_sessions"

    id = Column(String, primary_key=True)  # JWT の jti
    user_id = Column(String, ForeignKey("auth_users.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    revoked_at = Column(DateTime, nullable=True)
