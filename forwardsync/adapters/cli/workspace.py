"""
CLI workspace: configuration, backend thread and logged-in front end
"""
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

import typer
from rich.markup import escape

from ...core.exceptions import ConfigError
from ...core.logging import get_logger, get_stdout_console
from ...domain.models import AuthStatus, Credentials, Target
from ...domain.sync import SessionRegistry, SyncEngine, start_backend
from ..config import ConfigLoader, parse_app_config
from ..frontend import Frontend
from .prompts import RichPromptProvider

logger = get_logger(__name__)
console = get_stdout_console()

# How long to wait for the backend to wind down after Shutdown
_BACKEND_JOIN_TIMEOUT = 10.0


def prompt_credentials(
    prompts: RichPromptProvider,
    default_user: str,
    user: Optional[str] = None,
    need_root: bool = False,
) -> Credentials:
    """Ask for the login (and, for pushes, the privileged) password"""
    username = user or prompts.prompt("Username", default=default_user or None)
    password = prompts.prompt(f"Password for {username}", password=True)
    root_password = prompts.prompt("Root password", password=True) if need_root else ""

    credentials = Credentials(username=username, password=password, root_password=root_password)
    if not username.strip() or not password.strip() or (need_root and not root_password.strip()):
        raise ConfigError("Username and passwords must not be empty")
    return credentials


def single_target(targets: List[Target]) -> Target:
    if len(targets) != 1:
        keys = ", ".join(target.key for target in targets)
        raise ConfigError(f"Selector matches {len(targets)} targets ({keys}); pick one")
    return targets[0]


def _announce_step(target: Target, stage: str) -> None:
    console.print(f"[cyan]▶[/cyan] {stage}: {escape(str(target))}")


@contextmanager
def open_workspace(
    config_path: str,
    selector: Optional[str],
    prompts: RichPromptProvider,
    user: Optional[str] = None,
    need_root: bool = False,
) -> Iterator[tuple]:
    """
    Load configuration, start the backend and log in to the selected targets.

    Yields:
        (frontend, selected targets). Failed logins are reported through
        the notifier. Read-only commands still get every target and skip
        the ones without a table; with need_root any failed login exits
        with status 1 before yielding.
    """
    path = Path(config_path).expanduser()
    app_config = parse_app_config(ConfigLoader().load(toml_path=path))

    registry = SessionRegistry(connect_timeout=app_config.settings.connect_timeout)
    engine = SyncEngine(registry, app_config.settings, on_step=_announce_step)
    requests, responses, thread = start_backend(engine)
    frontend = Frontend(app_config.targets, requests, responses, notify=prompts.notify)

    try:
        selected = frontend.select(selector)
        credentials = prompt_credentials(prompts, app_config.username, user=user, need_root=need_root)
        frontend.login(credentials, selected)
        frontend.wait_idle()

        failed = [target for target in selected if target.auth_status != AuthStatus.AUTHENTICATED]
        if need_root and failed:
            raise typer.Exit(1)

        yield frontend, selected
    finally:
        frontend.shutdown()
        thread.join(timeout=_BACKEND_JOIN_TIMEOUT)
