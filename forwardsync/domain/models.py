"""
Domain models shared by the sync engine and the front end
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List

from ..core.constants import DEFAULT_SSH_PORT

# mailbox -> ordered redirection destinations
AliasTable = Dict[str, List[str]]


class AuthStatus(str, Enum):
    UNKNOWN = "unknown"
    IN_PROGRESS = "in_progress"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"

    @classmethod
    def from_success(cls, success: bool) -> "AuthStatus":
        return cls.AUTHENTICATED if success else cls.FAILED


class TableStatus(str, Enum):
    UNKNOWN = "unknown"
    DOWNLOADING = "downloading"
    IDLE = "idle"
    UPLOADING = "uploading"


@dataclass
class Target:
    """
    A remote mail host and the alias file to keep in sync.

    Only (address, port, path) take part in equality; the table and the
    status fields change as responses arrive and are compared out.
    """
    address: str
    path: str
    port: int = DEFAULT_SSH_PORT

    table: AliasTable = field(default_factory=dict, compare=False, repr=False)
    auth_status: AuthStatus = field(default=AuthStatus.UNKNOWN, compare=False)
    table_status: TableStatus = field(default=TableStatus.UNKNOWN, compare=False)
    last_error: str = field(default="", compare=False, repr=False)

    def __str__(self) -> str:
        return f"{self.address}:{self.port}"

    @property
    def key(self) -> str:
        """Identity string used to key sessions"""
        return f"{self.address}:{self.port}:{self.path}"

    def identity(self) -> "Target":
        """Copy carrying only the identity fields, safe to hand to another thread"""
        return Target(address=self.address, path=self.path, port=self.port)

    @property
    def busy(self) -> bool:
        return (
            self.auth_status == AuthStatus.IN_PROGRESS
            or self.table_status in (TableStatus.DOWNLOADING, TableStatus.UPLOADING)
        )

    def matches(self, selector: str) -> bool:
        """Match a CLI selector: full key, address:port, or bare address"""
        return selector in (self.key, str(self), self.address)


@dataclass
class Credentials:
    username: str
    password: str = field(repr=False)
    root_password: str = field(default="", repr=False)

    def is_complete(self) -> bool:
        return bool(
            self.username.strip()
            and self.password.strip()
            and self.root_password.strip()
        )
