"""
forwardsync - mail forwarding manager

View and edit postfix virtual alias tables on remote mail servers over SSH:
- Alias file parsing and serialization
- One SSH session per server, kept for the whole run
- Fetch: download and parse the remote table
- Push: backup, upload, install with su, then verify the installed file
"""

__version__ = "0.1.0"

from .core import (
    AuthOutcome,
    AuthResult,
    ClientConfig,
    Session,
)

from .domain import (
    AliasTable,
    AuthStatus,
    Credentials,
    TableStatus,
    Target,
)

from .domain.sync import (
    SessionRegistry,
    SyncEngine,
    SyncSettings,
    Dispatcher,
    start_backend,
)

__all__ = [
    # Version
    "__version__",
    # Session
    "AuthOutcome",
    "AuthResult",
    "ClientConfig",
    "Session",
    # Models
    "AliasTable",
    "AuthStatus",
    "Credentials",
    "TableStatus",
    "Target",
    # Sync
    "SessionRegistry",
    "SyncEngine",
    "SyncSettings",
    "Dispatcher",
    "start_backend",
]
