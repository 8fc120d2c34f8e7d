"""
Messages exchanged between the front end and the backend thread
"""
from dataclasses import dataclass, field
from typing import List, Optional, Union

from ..models import AliasTable, Target


# ============================================================
# Front end -> backend
# ============================================================

@dataclass
class Authenticate:
    username: str
    password: str = field(repr=False)
    root_password: str = field(repr=False)
    targets: List[Target] = field(default_factory=list)


@dataclass
class FetchTable:
    target: Target


@dataclass
class PushTable:
    target: Target
    table: AliasTable


@dataclass
class Shutdown:
    """Closes the request stream; the backend loop exits on it"""
    pass


Request = Union[Authenticate, FetchTable, PushTable, Shutdown]


# ============================================================
# Backend -> front end
# ============================================================

@dataclass
class AuthenticationResult:
    target: Target
    success: bool
    # Only set for transport failures; a rejected password carries None
    error: Optional[str] = None


@dataclass
class TableFetched:
    target: Target
    table: AliasTable


@dataclass
class FetchFailed:
    target: Target
    error: str


@dataclass
class PushResult:
    target: Target
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None


Response = Union[AuthenticationResult, TableFetched, FetchFailed, PushResult]
