# circle_board/views/auth_gate.py
import logging
from typing import Optional

from ..errors import CollaboratorError, ValidationFailed
from ..gateway import AuthService, AuthSessionInfo, GatewayError

logger = logging.getLogger(__name__)

LOGGED_OUT = "loggedOut"
LOGGED_IN = "loggedIn"

SIGN_UP_DONE_MESSAGE = "登録しました。ログインしてください"
MISSING_CREDENTIALS_MESSAGE = "メールアドレスとパスワードを入力してください"


class AuthGate:
    """
    ログイン画面の状態。

    loggedOut --(sign_up)--> loggedOut（確認メッセージ付き）
    loggedOut --(log_in 成功)--> loggedIn
    loggedIn  --(log_out)--> loggedOut（認証情報とメンバー ID を破棄）
    失敗時は message を設定して状態は変えない。
    """

    def __init__(self, auth: AuthService):
        self.auth = auth
        self.state = LOGGED_OUT
        self.email = ""
        self.password = ""
        self.member_id: Optional[str] = None
        self.session: Optional[AuthSessionInfo] = None
        self.message = ""

    @property
    def is_logged_in(self) -> bool:
        return self.state == LOGGED_IN

    def _adopt(self, session: AuthSessionInfo) -> None:
        self.session = session
        self.member_id = session.user_id
        self.state = LOGGED_IN

    def bootstrap(self, access_token: Optional[str] = None) -> bool:
        """起動時に既存セッションを確認する。あればログイン済みにする"""
        session = self.auth.get_session(access_token)
        if session is None:
            return False
        self._adopt(session)
        return True

    def _check_filled(self) -> None:
        if not self.email.strip() or not self.password:
            self.message = MISSING_CREDENTIALS_MESSAGE
            raise ValidationFailed(MISSING_CREDENTIALS_MESSAGE)

    def sign_up(self) -> dict:
        self._check_filled()
        try:
            user = self.auth.sign_up(self.email, self.password)
        except GatewayError as e:
            self.message = e.message
            raise CollaboratorError(e.message, e.code) from e
        self.message = SIGN_UP_DONE_MESSAGE
        return user

    def log_in(self) -> None:
        self._check_filled()
        try:
            session = self.auth.sign_in(self.email, self.password)
        except GatewayError as e:
            self.message = e.message
            raise CollaboratorError(e.message, e.code) from e
        self._adopt(session)
        self.message = ""
        logger.info("logged in as %s", session.user_id)

    def log_out(self) -> None:
        if self.session is not None:
            self.auth.sign_out(self.session.access_token)
        self.state = LOGGED_OUT
        self.session = None
        self.member_id = None
        self.email = ""
        self.password = ""
        self.message = ""
