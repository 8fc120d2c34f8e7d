"""
Unified exception definitions
"""
from typing import Optional


class ForwardSyncError(Exception):
    """Base exception class"""
    pass


class ConfigError(ForwardSyncError):
    """Configuration error"""
    pass


class TransportError(ForwardSyncError):
    """Connection, timeout or SSH negotiation failure"""
    pass


class CredentialRejected(ForwardSyncError):
    """The server refused the login credentials"""
    pass


class TransferError(ForwardSyncError):
    """File download or upload failure"""

    def __init__(self, message: str, remote_path: Optional[str] = None):
        super().__init__(message)
        self.remote_path = remote_path


class ParseError(ForwardSyncError):
    """Malformed alias file"""

    def __init__(self, message: str, line_number: Optional[int] = None, line: Optional[str] = None):
        super().__init__(message)
        self.line_number = line_number
        self.line = line


class SyncError(ForwardSyncError):
    """Sync error"""
    pass


class NoSessionError(SyncError):
    """Operation attempted on a target without an authenticated session"""
    pass


class TableNotPushableError(SyncError):
    """Alias table has mailboxes without destinations"""

    def __init__(self, mailboxes):
        self.mailboxes = list(mailboxes)
        super().__init__(
            "Refusing to push a table with empty redirections: "
            + ", ".join(self.mailboxes)
        )


class BackupError(SyncError):
    """Remote backup could not be confirmed"""
    pass


class PushStageError(SyncError):
    """A push step failed; carries the target and the step name"""

    def __init__(self, target: str, stage: str, cause: Exception):
        self.target = target
        self.stage = stage
        self.cause = cause
        super().__init__(f"{stage} failed for {target}: {cause}")


class VerificationFailed(SyncError):
    """Installed remote file differs from the pushed table"""

    def __init__(self, target: str, missing=(), unexpected=()):
        self.target = target
        self.missing = list(missing)
        self.unexpected = list(unexpected)
        super().__init__("Configuration was not updated!")
