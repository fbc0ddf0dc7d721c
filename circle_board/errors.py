# circle_board/errors.py

# 一意制約・外部キー制約などの違反（SQLSTATE）
CONFLICT_CODES = ("23505", "23000")


class AppError(Exception):
    """画面側（ストア）が利用者に見せるエラーの基底クラス"""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailed(AppError):
    """必須項目が空など。ゲートウェイを呼ぶ前に止める"""

    status_code = 400


class AuthorizationFailed(AppError):
    """メンバー ID 不明、または他人のレコードを操作しようとした"""

    status_code = 403


class CollaboratorError(AppError):
    """ゲートウェイ（DB / ストレージ / 認証）が返した失敗"""

    status_code = 502

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.code = code
        if code in CONFLICT_CODES:
            self.status_code = 409
