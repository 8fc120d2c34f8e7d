from __future__ import annotations

import socket
import tempfile
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

import paramiko

from .constants import DEFAULT_CONNECT_TIMEOUT, DEFAULT_SSH_PORT
from .exceptions import CredentialRejected, NoSessionError, TransferError, TransportError
from .interfaces import ConnectionFactory
from .logging import get_logger

logger = get_logger(__name__)


@dataclass
class ClientConfig:
    host: str
    user: str
    port: int = DEFAULT_SSH_PORT
    password: Optional[str] = field(default=None, repr=False)
    root_password: Optional[str] = field(default=None, repr=False)
    timeout: float = DEFAULT_CONNECT_TIMEOUT


class AuthOutcome(str, Enum):
    AUTHENTICATED = "authenticated"
    REJECTED = "rejected"
    TRANSPORT_ERROR = "transport_error"


@dataclass
class AuthResult:
    outcome: AuthOutcome
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.outcome is AuthOutcome.AUTHENTICATED


class ParamikoClientFactory(ConnectionFactory):
    """Creates paramiko clients that accept unknown host keys"""

    def create(self) -> paramiko.SSHClient:
        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        return client


class InteractiveShell:
    """
    Interactive shell channel driven by timed waits.

    The remote side offers no prompt/response framing, so every write is
    followed by a fixed settle delay before whatever output arrived is read.
    """

    def __init__(self, channel: paramiko.Channel) -> None:
        self.channel = channel

    def send(self, text: str) -> None:
        self.channel.sendall(text.encode("utf-8"))

    def settle(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)

    def read_available(self) -> bytes:
        """Drain the output buffered on the channel without blocking"""
        buf = []
        while self.channel.recv_ready():
            data = self.channel.recv(4096)
            if not data:
                break
            buf.append(data)
        return b"".join(buf)

    def exchange(self, text: str, settle: float) -> bytes:
        """Write text, wait settle seconds, return the output read so far"""
        if not text.endswith("\n"):
            text += "\n"
        self.send(text)
        self.settle(settle)
        return self.read_available()

    def close(self) -> None:
        if not self.channel.closed:
            self.channel.close()

    def __enter__(self) -> InteractiveShell:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()


class Session:
    """
    One SSH connection to one target.

    - password login with a bounded connect timeout
    - SFTP download/upload through a private local staging directory
    - interactive shell channels for commands that need a TTY (su)
    """

    def __init__(
        self,
        config: ClientConfig,
        factory: Optional[ConnectionFactory] = None,
    ) -> None:
        self.config = config
        self.factory = factory or ParamikoClientFactory()
        self.client: Optional[paramiko.SSHClient] = None
        self._sftp: Optional[paramiko.SFTPClient] = None

    def __str__(self) -> str:
        return f"{self.config.host}:{self.config.port}"

    @property
    def authenticated(self) -> bool:
        return self.client is not None

    # --------------------
    # Connection management
    # --------------------
    def connect(self) -> None:
        """
        Open the connection and log in.

        Raises:
            CredentialRejected: The server refused the user/password
            TransportError: DNS, refusal, timeout or SSH negotiation failure
        """
        self.close()
        cfg = self.config
        client = self.factory.create()

        try:
            client.connect(
                hostname=cfg.host,
                port=cfg.port,
                username=cfg.user,
                password=cfg.password,
                timeout=cfg.timeout,
                banner_timeout=cfg.timeout,
                auth_timeout=cfg.timeout,
                allow_agent=False,
                look_for_keys=False,
            )
        except paramiko.AuthenticationException as e:
            client.close()
            raise CredentialRejected(f"Authentication rejected by {self}: {e}") from e
        except socket.timeout as e:
            client.close()
            raise TransportError(f"Timed out connecting to {self} after {cfg.timeout}s") from e
        except (paramiko.SSHException, OSError, EOFError) as e:
            client.close()
            raise TransportError(f"Failed to connect to {self}: {e}") from e
        except Exception:
            client.close()
            raise

        self.client = client
        logger.info(f"Authenticated {cfg.user}@{self}")

    def authenticate(self) -> AuthResult:
        """Connect and report the outcome instead of raising"""
        try:
            self.connect()
        except CredentialRejected:
            logger.warning(f"Credentials rejected for {self.config.user}@{self}")
            return AuthResult(AuthOutcome.REJECTED)
        except TransportError as e:
            logger.error(str(e))
            return AuthResult(AuthOutcome.TRANSPORT_ERROR, error=str(e))
        return AuthResult(AuthOutcome.AUTHENTICATED)

    def _require_client(self) -> paramiko.SSHClient:
        if self.client is None:
            raise NoSessionError(f"Session for {self} is not authenticated")
        return self.client

    def open_sftp(self) -> paramiko.SFTPClient:
        """Return the SFTP client, reusing the cached one"""
        client = self._require_client()
        if self._sftp is None or self._sftp.get_channel() is None:
            self._sftp = client.open_sftp()
        return self._sftp

    def close(self) -> None:
        if self._sftp is not None:
            try:
                self._sftp.close()
            except (OSError, EOFError, paramiko.SSHException):
                logger.debug(f"Ignoring error closing SFTP channel for {self}")
            self._sftp = None
        if self.client is not None:
            self.client.close()
            self.client = None

    # --------------------
    # File transfer
    # --------------------
    def fetch_remote_file(self, remote_path: str) -> bytes:
        """
        Download one remote file and return its contents.

        The file lands in a private temporary directory which is removed
        before returning, whether or not the download succeeded.

        Raises:
            NoSessionError: Session not authenticated
            TransferError: Missing file, permission denied, truncated transfer
        """
        self._require_client()
        with tempfile.TemporaryDirectory(prefix="forwardsync-") as staging:
            local_path = Path(staging) / f"fetch_{self.config.host}"
            try:
                sftp = self.open_sftp()
                sftp.get(remote_path, local_path.as_posix())
                data = local_path.read_bytes()
            except (OSError, EOFError, paramiko.SSHException) as e:
                logger.error(f"Can't download {self}:{remote_path}: {e}")
                raise TransferError(
                    f"Failed to download {remote_path} from {self}: {e}",
                    remote_path=remote_path,
                ) from e

        logger.debug(f"[pull] {self}:{remote_path} ({len(data)} bytes)")
        return data

    def upload_file(self, local_path: Path, remote_path: str) -> None:
        """
        Upload a local file.

        Raises:
            NoSessionError: Session not authenticated
            TransferError: Upload failed
        """
        self._require_client()
        try:
            sftp = self.open_sftp()
            sftp.put(Path(local_path).as_posix(), remote_path)
        except (OSError, EOFError, paramiko.SSHException) as e:
            logger.error(f"Can't upload {local_path} to {self}:{remote_path}: {e}")
            raise TransferError(
                f"Failed to upload to {remote_path} on {self}: {e}",
                remote_path=remote_path,
            ) from e
        logger.debug(f"[push] {local_path} → {self}:{remote_path}")

    # --------------------
    # Interactive commands
    # --------------------
    def open_shell(self) -> InteractiveShell:
        client = self._require_client()
        try:
            channel = client.invoke_shell()
        except (paramiko.SSHException, OSError, EOFError) as e:
            raise TransportError(f"Failed to open shell on {self}: {e}") from e
        return InteractiveShell(channel)

    def run_interactive(self, command: str, settle: float) -> bytes:
        """Run command in a fresh interactive shell and return output seen after settle seconds"""
        with self.open_shell() as shell:
            return shell.exchange(command, settle)

    # --------------------
    # Context manager
    # --------------------
    def __enter__(self) -> Session:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
