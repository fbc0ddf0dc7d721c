# circle_board/schemas/auth.py

from datetime import datetime

from pydantic import BaseModel


class Credentials(BaseModel):
    email: str
    password: str


class SignUpOut(BaseModel):
    id: str
    email: str
    message: str


class SessionOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str
    expires_at: datetime
