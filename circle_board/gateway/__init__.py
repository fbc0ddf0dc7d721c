from .collections import (
    COLLECTIONS,
    DUPLICATE_KEY,
    GatewayError,
    SqlCollectionGateway,
)
from .realtime import ChangeEvent, ChangeFeed, Subscription, change_feed
from .storage import ObjectStorage
from .auth import AuthService, AuthSessionInfo

__all__ = [
    "COLLECTIONS",
    "DUPLICATE_KEY",
    "GatewayError",
    "SqlCollectionGateway",
    "ChangeEvent",
    "ChangeFeed",
    "Subscription",
    "change_feed",
    "ObjectStorage",
    "AuthService",
    "AuthSessionInfo",
]
