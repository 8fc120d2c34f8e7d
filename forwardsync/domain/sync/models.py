"""
Sync domain models
"""
from dataclasses import dataclass

from ...core.constants import (
    DEFAULT_BACKUP_SETTLE,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_ESCALATION_PROMPT_DELAY,
    DEFAULT_INSTALL_SETTLE,
    DEFAULT_PRIVILEGED_USER,
    DEFAULT_RELOAD_COMMAND,
    DEFAULT_STAGING_DIR,
)


@dataclass
class SyncSettings:
    """
    Tunables for sessions and the push protocol.

    The settle delays stand in for prompt detection on the interactive
    shell: su gets escalation_prompt_delay seconds to print its password
    prompt and the install gets install_settle seconds to finish before
    verification downloads the file. Slow hosts need larger values.

    Attributes:
        connect_timeout: TCP/SSH connect timeout in seconds
        backup_settle: Wait after sending the backup command
        escalation_prompt_delay: Wait between su and the password
        install_settle: Wait after the password before verifying
        staging_dir: World-writable remote directory for the staged upload
        privileged_user: Account su switches to
        reload_command: Run after the copy to rebuild the postfix map
        strict_backup: Abort the push when the backup is not confirmed
    """
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    backup_settle: float = DEFAULT_BACKUP_SETTLE
    escalation_prompt_delay: float = DEFAULT_ESCALATION_PROMPT_DELAY
    install_settle: float = DEFAULT_INSTALL_SETTLE
    staging_dir: str = DEFAULT_STAGING_DIR
    privileged_user: str = DEFAULT_PRIVILEGED_USER
    reload_command: str = DEFAULT_RELOAD_COMMAND
    strict_backup: bool = True
