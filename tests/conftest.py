# tests/conftest.py
import os
import tempfile

# アプリを import する前に、テスト用の DB / ストレージへ向ける
_TMP_DIR = tempfile.mkdtemp(prefix="circle_board_test_")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_TMP_DIR, "test.db")
os.environ["STORAGE_DIR"] = os.path.join(_TMP_DIR, "storage")
os.environ["JWT_SECRET"] = "test-secret"

import pytest
from sqlalchemy.orm import Session
from fastapi.testclient import TestClient

from circle_board.db import Base, engine, SessionLocal
from circle_board.main import app
from circle_board.gateway import AuthService, ChangeFeed, ObjectStorage, SqlCollectionGateway


@pytest.fixture(scope="function")
def db() -> Session:
    """
    テストごとにクリーンな DB を用意するフィクスチャ。
    アプリ本体と同じ engine を使う。
    """
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db: Session) -> TestClient:
    """通常の FastAPI app をそのまま使う TestClient"""
    with TestClient(app) as c:
        yield c


@pytest.fixture(scope="function")
def gateway(db: Session) -> SqlCollectionGateway:
    """変更通知はテストごとに新しいものを使う"""
    return SqlCollectionGateway(SessionLocal, feed=ChangeFeed())


@pytest.fixture(scope="function")
def storage(tmp_path) -> ObjectStorage:
    return ObjectStorage(str(tmp_path / "storage"), "http://testserver")


@pytest.fixture(scope="function")
def auth(db: Session) -> AuthService:
    return AuthService(SessionLocal, secret="test-secret", expire_days=1)


@pytest.fixture(scope="function")
def login(client: TestClient):
    """
    サインアップ → ログインして Authorization ヘッダーを返すヘルパー。
    返り値は (headers, user_id)。
    """

    def _login(email: str, password: str = "password123"):
        res = client.post("/api/auth/signup", json={"email": email, "password": password})
        assert res.status_code == 200, res.text
        res = client.post("/api/auth/login", json={"email": email, "password": password})
        assert res.status_code == 200, res.text
        body = res.json()
        return {"Authorization": f"Bearer {body['access_token']}"}, body["user_id"]

    return _login
