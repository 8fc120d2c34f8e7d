"""
Core infrastructure layer
"""
from .client import (
    AuthOutcome,
    AuthResult,
    ClientConfig,
    InteractiveShell,
    ParamikoClientFactory,
    Session,
)
from .constants import *
from .exceptions import *
from .logging import setup_logging, get_logger, get_stdout_console, get_stderr_console
from .interfaces import ConnectionFactory, PromptProvider

__all__ = [
    "AuthOutcome",
    "AuthResult",
    "ClientConfig",
    "InteractiveShell",
    "ParamikoClientFactory",
    "Session",
    "setup_logging",
    "get_logger",
    "get_stdout_console",
    "get_stderr_console",
    "ConnectionFactory",
    "PromptProvider",
]
