# circle_board/api/v1/auth.py

from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from ...api.deps import get_auth, get_current_session, security
from ...errors import CollaboratorError
from ...gateway import AuthService, AuthSessionInfo
from ...gateway.auth import USER_ALREADY_EXISTS
from ...schemas.auth import Credentials, SessionOut, SignUpOut
from ...views.auth_gate import AuthGate

router = APIRouter(prefix="/auth", tags=["auth"])


def _session_out(session: AuthSessionInfo) -> SessionOut:
    return SessionOut(
        access_token=session.access_token,
        user_id=session.user_id,
        email=session.email,
        expires_at=session.expires_at,
    )


@router.post("/signup", response_model=SignUpOut)
def sign_up(
    data: Credentials,
    auth: AuthService = Depends(get_auth),
):
    """新規登録（登録後はあらためてログインしてもらう）"""
    gate = AuthGate(auth)
    gate.email = data.email
    gate.password = data.password
    try:
        user = gate.sign_up()
    except CollaboratorError as e:
        status = 409 if e.code == USER_ALREADY_EXISTS else 400
        raise HTTPException(status_code=status, detail=e.message)
    return SignUpOut(id=user["id"], email=user["email"], message=gate.message)


@router.post("/login", response_model=SessionOut)
def log_in(
    data: Credentials,
    auth: AuthService = Depends(get_auth),
):
    gate = AuthGate(auth)
    gate.email = data.email
    gate.password = data.password
    try:
        gate.log_in()
    except CollaboratorError as e:
        raise HTTPException(status_code=401, detail=e.message)
    return _session_out(gate.session)


@router.post("/logout", status_code=204)
def log_out(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    auth: AuthService = Depends(get_auth),
):
    """トークンを無効化する（未ログインでもエラーにしない）"""
    if credentials is not None:
        auth.sign_out(credentials.credentials)
    return


@router.get("/session", response_model=SessionOut)
def current_session(session: AuthSessionInfo = Depends(get_current_session)):
    return _session_out(session)
