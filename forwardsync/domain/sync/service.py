"""
Sync domain service - fetch and push protocols
"""
import re
import shlex
import tempfile
from contextlib import contextmanager
from pathlib import Path, PurePosixPath
from typing import Callable, Iterator, Optional

import paramiko

from ...core.client import Session
from ...core.constants import (
    BACKUP_STATUS_MARKER,
    BACKUP_TIMESTAMP_FORMAT,
    DEFAULT_CONFIG_FILENAME,
)
from ...core.exceptions import (
    BackupError,
    ForwardSyncError,
    PushStageError,
    SyncError,
    TableNotPushableError,
    VerificationFailed,
)
from ...core.logging import get_logger
from ..aliases import decode, empty_mailboxes, parse, payload_lines, serialize
from ..models import AliasTable, Target
from .models import SyncSettings
from .registry import SessionRegistry

logger = get_logger(__name__)

_BACKUP_STATUS = re.compile(re.escape(BACKUP_STATUS_MARKER) + r"(\d+)")


class SyncEngine:
    """
    Fetch and push alias tables.

    Push process:
    1. Back up the remote file into the login user's home
    2. Serialize the table to a local temporary file
    3. Upload it to the shared staging directory
    4. su to the privileged account, copy it into place, run the reload hook
    5. Download the installed file and compare it with the payload

    The su step has no success signal of its own, so step 5 is the only
    acknowledgement that the edit was applied.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        settings: Optional[SyncSettings] = None,
        on_step: Optional[Callable[[Target, str], None]] = None,
    ):
        """
        Initialize sync engine.

        Args:
            registry: Sessions to operate on
            settings: Push tunables (defaults if None)
            on_step: Callback when a push step starts (target, step name)
        """
        self.registry = registry
        self.settings = settings or SyncSettings()
        self.on_step = on_step

    # ============================================================
    # Fetch
    # ============================================================

    def fetch(self, target: Target) -> AliasTable:
        """
        Download and parse the target's alias file.

        Raises:
            NoSessionError: Target has no session
            TransferError: Download failed
            ParseError: File is malformed; nothing is returned
        """
        session = self.registry.get(target)
        raw = session.fetch_remote_file(target.path)
        table = parse(decode(raw))
        logger.info(f"Fetched {len(table)} mailboxes from {target}:{target.path}")
        return table

    # ============================================================
    # Push
    # ============================================================

    def push(self, target: Target, table: AliasTable) -> None:
        """
        Install table as the target's alias file and verify it.

        Raises:
            TableNotPushableError: Some mailbox has no destination; raised
                before any network call
            NoSessionError: Target has no authenticated session
            BackupError: Backup not confirmed and strict_backup is set
            PushStageError: A step failed (carries the step name)
            VerificationFailed: Installed file differs from the payload
        """
        empty = empty_mailboxes(table)
        if empty:
            raise TableNotPushableError(empty)

        session = self.registry.get(target)
        filename = PurePosixPath(target.path).name or DEFAULT_CONFIG_FILENAME
        staged_path = str(PurePosixPath(self.settings.staging_dir) / filename)
        payload = serialize(table)

        with tempfile.TemporaryDirectory(prefix="forwardsync-push-") as workdir:
            with self._step(target, "backup"):
                self._backup(session, target, filename)

            with self._step(target, "serialize"):
                local_file = Path(workdir) / filename
                local_file.write_text(payload, encoding="utf-8")

            with self._step(target, "upload"):
                session.upload_file(local_file, staged_path)

            with self._step(target, "install"):
                self._install(session, staged_path, target.path)

            with self._step(target, "verify"):
                self._verify(session, target, payload)

        logger.info(f"Configuration updated on {target}:{target.path}")

    @contextmanager
    def _step(self, target: Target, stage: str) -> Iterator[None]:
        logger.debug(f"[{stage}] {target}:{target.path}")
        if self.on_step:
            self.on_step(target, stage)
        try:
            yield
        except SyncError:
            raise
        except (ForwardSyncError, OSError, EOFError, paramiko.SSHException) as e:
            logger.error(f"Push step '{stage}' failed for {target}: {e}")
            raise PushStageError(str(target), stage, e) from e

    def _backup(self, session: Session, target: Target, filename: str) -> None:
        """Copy the live file to ~/<name>_<timestamp>.bak"""
        backup_name = (
            f"~/{shlex.quote(filename)}_`date \"{BACKUP_TIMESTAMP_FORMAT}\"`.bak"
        )
        command = (
            f"cp {shlex.quote(target.path)} {backup_name}; "
            f"echo \"{BACKUP_STATUS_MARKER}$?\""
        )
        output = session.run_interactive(command, self.settings.backup_settle)
        text = output.decode("utf-8", errors="replace")
        logger.debug(f"Backup output from {target}:\n{text}")

        match = _BACKUP_STATUS.search(text)
        if match is None:
            problem = f"no confirmation within {self.settings.backup_settle}s"
        elif match.group(1) != "0":
            problem = f"cp exited with status {match.group(1)}"
        else:
            logger.info(f"Backed up {target}:{target.path}")
            return

        message = f"Backup of {target.path} on {target} failed: {problem}"
        if self.settings.strict_backup:
            raise BackupError(message)
        logger.warning(f"{message} (continuing, strict_backup is off)")

    def _install(self, session: Session, staged_path: str, config_path: str) -> None:
        """su to the privileged user, copy the staged file into place and reload"""
        settings = self.settings
        script = f"cp {shlex.quote(staged_path)} {shlex.quote(config_path)}"
        if settings.reload_command:
            script += f"; {settings.reload_command}"
        command = f"su {shlex.quote(settings.privileged_user)} -c {shlex.quote(script)}"

        with session.open_shell() as shell:
            shell.exchange(command, settings.escalation_prompt_delay)
            # Password is only submitted once the prompt had time to appear
            shell.send((session.config.root_password or "") + "\n")
            shell.settle(settings.install_settle)
            output = shell.read_available().decode("utf-8", errors="replace")

        logger.debug(f"Install output from {session}:\n{output}")

    def _verify(self, session: Session, target: Target, payload: str) -> None:
        installed = decode(session.fetch_remote_file(target.path))

        actual = payload_lines(installed)
        expected = payload_lines(payload)
        logger.debug(
            "Comparing:\n==========\n%s\n==========\n%s\n==========",
            "\n".join(actual),
            "\n".join(expected),
        )

        if actual != expected:
            missing = sorted(set(expected) - set(actual))
            unexpected = sorted(set(actual) - set(expected))
            logger.error(
                f"Verification failed for {target}: "
                f"{len(missing)} missing, {len(unexpected)} unexpected lines"
            )
            raise VerificationFailed(str(target), missing=missing, unexpected=unexpected)
