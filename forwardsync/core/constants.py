"""
Project constants definitions
"""

# ============================================================
# Connection
# ============================================================

DEFAULT_SSH_PORT = 22
DEFAULT_CONNECT_TIMEOUT = 5.0

# ============================================================
# Push protocol
# ============================================================

DEFAULT_STAGING_DIR = "/tmp"
DEFAULT_PRIVILEGED_USER = "root"
DEFAULT_RELOAD_COMMAND = "/etc/postfix/post_update"
DEFAULT_CONFIG_FILENAME = "virtual"

# Timed waits on the interactive shell (seconds)
DEFAULT_BACKUP_SETTLE = 2.0
DEFAULT_ESCALATION_PROMPT_DELAY = 0.5
DEFAULT_INSTALL_SETTLE = 0.5

BACKUP_TIMESTAMP_FORMAT = "+%Y-%m-%d_%H-%M-%S"
BACKUP_STATUS_MARKER = "__forwardsync_backup_rc="

# ============================================================
# Configuration
# ============================================================

ENV_PREFIX = "FORWARDSYNC_"
