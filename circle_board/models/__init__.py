from .profile import Profile
from .board import BandPost, PostLike, PostComment
from .auth import AuthUser, AuthSession

__all__ = [
    "Profile",
    "BandPost",
    "PostLike",
    "PostComment",
    "AuthUser",
    "AuthSession",
]
