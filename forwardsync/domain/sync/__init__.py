"""
Sync domain module
"""
from .models import SyncSettings
from .registry import SessionRegistry
from .service import SyncEngine
from .dispatcher import Dispatcher, start_backend
from .messages import (
    Authenticate,
    FetchTable,
    PushTable,
    Shutdown,
    AuthenticationResult,
    TableFetched,
    FetchFailed,
    PushResult,
)

__all__ = [
    "SyncSettings",
    "SessionRegistry",
    "SyncEngine",
    "Dispatcher",
    "start_backend",
    "Authenticate",
    "FetchTable",
    "PushTable",
    "Shutdown",
    "AuthenticationResult",
    "TableFetched",
    "FetchFailed",
    "PushResult",
]
