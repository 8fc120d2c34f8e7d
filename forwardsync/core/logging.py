"""
Logging and console output

Log records go to stderr through rich; command results go to the stdout
console so they stay separable from diagnostics.
"""
import sys
import logging
from typing import Optional, Union
from pathlib import Path

from rich.logging import RichHandler
from rich.console import Console


_stdout_console = Console(file=sys.stdout)
_stderr_console = Console(file=sys.stderr)

# Third-party loggers that are too chatty below WARNING
_NOISY_LOGGERS = ("paramiko", "paramiko.transport")

_FILE_FORMAT = "%(asctime)s - %(threadName)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    rich_tracebacks: bool = True,
) -> None:
    """
    Configure the root logger for a forwardsync run.

    Args:
        level: Level name for forwardsync's own loggers
        log_file: Also append plain records here; the thread name is
            included so backend and front end lines can be told apart
        rich_tracebacks: Render exceptions with rich on the console
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    debug = log_level <= logging.DEBUG

    root = logging.getLogger()
    root.setLevel(log_level)
    root.handlers.clear()

    console_handler = RichHandler(
        console=_stderr_console,
        show_time=True,
        show_level=True,
        show_path=debug,
        markup=False,
        rich_tracebacks=rich_tracebacks,
    )
    console_handler.setLevel(log_level)
    root.addHandler(console_handler)

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        root.addHandler(file_handler)

    # paramiko logs every channel open at INFO
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if debug else logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Module logger, normally get_logger(__name__)"""
    return logging.getLogger(name)


def get_stdout_console() -> Console:
    """Console for command results"""
    return _stdout_console


def get_stderr_console() -> Console:
    """Console for errors and log records"""
    return _stderr_console
