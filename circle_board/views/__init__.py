from .identity import (
    FileLocalStorage,
    LocalIdentity,
    MemoryLocalStorage,
    local_identity,
    resolve_member_id,
)
from .auth_gate import AuthGate, LOGGED_IN, LOGGED_OUT
from .filters import ALL_PARTS, visible_profiles
from .profile_store import ProfileStoreView
from .board_store import BoardStoreView, EDITING, IDLE

__all__ = [
    "FileLocalStorage",
    "LocalIdentity",
    "MemoryLocalStorage",
    "local_identity",
    "resolve_member_id",
    "AuthGate",
    "LOGGED_IN",
    "LOGGED_OUT",
    "ALL_PARTS",
    "visible_profiles",
    "ProfileStoreView",
    "BoardStoreView",
    "EDITING",
    "IDLE",
]
