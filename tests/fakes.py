"""In-memory stand-ins for paramiko clients and a remote mail host."""

from __future__ import annotations

import shlex
from pathlib import Path
from typing import Dict, List, Optional

import paramiko

from forwardsync.core.constants import BACKUP_STATUS_MARKER
from forwardsync.core.interfaces import ConnectionFactory


class FakeRemoteHost:
    """A mail server: a file system dict, one login and a root password.

    Knobs:
        connect_error: raised from connect() instead of logging in
        backup_status: exit status printed after the backup cp (None = no output)
        install_noop: su accepts the password but leaves the config untouched
        fail_put: SFTP uploads raise IOError
    """

    def __init__(
        self,
        files: Optional[Dict[str, bytes]] = None,
        user: str = "admin",
        password: str = "secret",
        root_password: str = "rootpw",
    ) -> None:
        self.files: Dict[str, bytes] = dict(files or {})
        self.user = user
        self.password = password
        self.root_password = root_password
        self.connect_error: Optional[Exception] = None
        self.backup_status: Optional[int] = 0
        self.install_noop = False
        self.fail_put = False
        self.log: List[str] = []
        self.backups: Dict[str, bytes] = {}

    def handle_line(self, channel: FakeChannel, line: str) -> bytes:
        self.log.append(f"shell:{line}")

        if channel.pending_su is not None:
            script, channel.pending_su = channel.pending_su, None
            if line != self.root_password:
                return b"su: Authentication failure\r\n"
            if not self.install_noop:
                src, dst = shlex.split(script.split(";")[0])[1:3]
                self.files[dst] = self.files[src]
            return b"\r\n"

        if line.startswith("su "):
            channel.pending_su = shlex.split(line)[3]
            return f"{line}\r\nPassword: ".encode()

        if line.startswith("cp ") and BACKUP_STATUS_MARKER in line:
            source = shlex.split(line.split(";")[0])[1]
            if self.backup_status is None:
                return b""
            if self.backup_status == 0:
                self.backups[source] = self.files[source]
            return f"{line}\r\n{BACKUP_STATUS_MARKER}{self.backup_status}\r\n".encode()

        return f"{line}\r\n".encode()


class FakeChannel:
    def __init__(self, host: FakeRemoteHost) -> None:
        self.host = host
        self.closed = False
        self.sent: List[str] = []
        self.pending_su: Optional[str] = None
        self._out = bytearray()

    def sendall(self, data) -> None:
        text = data.decode() if isinstance(data, bytes) else data
        for line in text.splitlines():
            self.sent.append(line)
            self._out += self.host.handle_line(self, line)

    def recv_ready(self) -> bool:
        return bool(self._out)

    def recv(self, size: int) -> bytes:
        chunk = bytes(self._out[:size])
        del self._out[:size]
        return chunk

    def close(self) -> None:
        self.closed = True


class FakeSFTP:
    def __init__(self, host: FakeRemoteHost) -> None:
        self.host = host
        self.closed = False

    def get_channel(self):
        return None if self.closed else object()

    def get(self, remotepath: str, localpath: str) -> None:
        self.host.log.append(f"get:{remotepath}")
        if remotepath not in self.host.files:
            raise IOError(2, "No such file")
        Path(localpath).write_bytes(self.host.files[remotepath])

    def put(self, localpath: str, remotepath: str) -> None:
        self.host.log.append(f"put:{remotepath}")
        if self.host.fail_put:
            raise IOError(13, "Permission denied")
        self.host.files[remotepath] = Path(localpath).read_bytes()

    def close(self) -> None:
        self.closed = True


class FakeSSHClient:
    def __init__(self, factory: FakeClientFactory) -> None:
        self.factory = factory
        self.host: Optional[FakeRemoteHost] = None
        self.closed = False
        self.connect_kwargs: dict = {}
        self.channels: List[FakeChannel] = []

    def connect(self, hostname: str, port: int = 22, username=None, password=None, **kwargs) -> None:
        self.connect_kwargs = dict(hostname=hostname, port=port, username=username, **kwargs)
        host = self.factory.hosts.get(f"{hostname}:{port}")
        if host is None:
            raise paramiko.ssh_exception.NoValidConnectionsError({(hostname, port): OSError("refused")})
        if host.connect_error is not None:
            raise host.connect_error
        if username != host.user or password != host.password:
            raise paramiko.AuthenticationException("Authentication failed.")
        host.log.append("connect")
        self.host = host

    def open_sftp(self) -> FakeSFTP:
        return FakeSFTP(self.host)

    def invoke_shell(self) -> FakeChannel:
        channel = FakeChannel(self.host)
        self.channels.append(channel)
        return channel

    def close(self) -> None:
        self.closed = True


class FakeClientFactory(ConnectionFactory):
    def __init__(self, hosts: Optional[Dict[str, FakeRemoteHost]] = None) -> None:
        self.hosts: Dict[str, FakeRemoteHost] = dict(hosts or {})
        self.clients: List[FakeSSHClient] = []

    def create(self) -> FakeSSHClient:
        client = FakeSSHClient(self)
        self.clients.append(client)
        return client
