"""
Alias table CLI commands
"""
from pathlib import Path
from typing import Callable, List, Optional

import typer
from rich.markup import escape
from rich.table import Table

from ...core.exceptions import ConfigError, ForwardSyncError, ParseError
from ...core.logging import get_logger, get_stdout_console, get_stderr_console
from ...domain import aliases
from ...domain.models import AliasTable, TableStatus, Target
from .prompts import RichPromptProvider
from .workspace import open_workspace, single_target

logger = get_logger(__name__)
stdout_console = get_stdout_console()
stderr_console = get_stderr_console()
prompt_provider = RichPromptProvider()


def register_alias_commands(app: typer.Typer) -> None:
    """Register the alias table commands on the main app"""
    app.command(name="show")(show_run)
    app.command(name="pull")(pull_run)
    app.command(name="push")(push_run)
    app.command(name="set")(set_run)
    app.command(name="add")(add_run)
    app.command(name="remove")(remove_run)
    app.command(name="rename")(rename_run)
    app.command(name="check")(check_run)


# ============================================================
# Rendering
# ============================================================

def render_table(target: Target) -> Table:
    table = Table(title=f"{target} {target.path}", title_justify="left")
    table.add_column("Mailbox", style="cyan", no_wrap=True)
    table.add_column("Redirections")
    for mailbox in sorted(target.table):
        destinations = target.table[mailbox]
        table.add_row(
            escape(mailbox),
            escape("\n".join(destinations)) if destinations else "[red](none)[/red]",
        )
    return table


def _print_diff(before: AliasTable, after: AliasTable) -> bool:
    """Print mailbox-level changes; returns whether there are any"""
    added, removed, changed = aliases.diff_tables(before, after)
    for mailbox in added:
        stdout_console.print(f"[green]+[/green] {escape(mailbox)}: {escape(' '.join(after[mailbox]))}")
    for mailbox in removed:
        stdout_console.print(f"[red]-[/red] {escape(mailbox)}")
    for mailbox in changed:
        stdout_console.print(f"[yellow]~[/yellow] {escape(mailbox)}: {escape(' '.join(after[mailbox]))}")
    return bool(added or removed or changed)


def _fail(message: str) -> None:
    stderr_console.print(f"[red]Error:[/red] {escape(message)}")
    raise typer.Exit(1)


def _run_guarded(action: Callable[[], None], what: str) -> None:
    """Run a command body, turning known errors into exit status 1"""
    try:
        action()
    except typer.Exit:
        raise
    except ConfigError as e:
        stderr_console.print(f"[red]Config Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    except ForwardSyncError as e:
        stderr_console.print(f"[red]Sync Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    except Exception as e:
        logger.exception(f"Failed to {what}")
        stderr_console.print(f"[red]Error:[/red] Failed to {what}: {escape(str(e))}")
        raise typer.Exit(1)


def _require_table(target: Target) -> None:
    if target.table_status != TableStatus.IDLE:
        _fail(f"Alias table of {target} is not available: {target.last_error}")


# ============================================================
# Read-only commands
# ============================================================

def show_run(
    config_path: str = typer.Argument(..., help="Configuration file path (TOML)"),
    target: Optional[str] = typer.Option(None, "--target", "-t", help="Only this target"),
    user: Optional[str] = typer.Option(None, "--user", "-u", help="Login user (default from configuration)"),
):
    """
    Show the alias tables of the configured servers

    Examples:
        forwardsync show config.toml
        forwardsync show config.toml -t mx1.example.com
    """
    def action() -> None:
        with open_workspace(config_path, target, prompt_provider, user=user) as (_, selected):
            failed = False
            for item in selected:
                if item.table_status == TableStatus.IDLE:
                    stdout_console.print(render_table(item))
                else:
                    failed = True
            if failed:
                raise typer.Exit(1)

    _run_guarded(action, "show alias tables")


def pull_run(
    config_path: str = typer.Argument(..., help="Configuration file path (TOML)"),
    output_dir: Path = typer.Argument(..., help="Directory for the downloaded alias files"),
    target: Optional[str] = typer.Option(None, "--target", "-t", help="Only this target"),
    user: Optional[str] = typer.Option(None, "--user", "-u", help="Login user (default from configuration)"),
):
    """
    Download alias tables into local files for offline editing

    Files are named <address>_<port>_<filename>, sorted by mailbox.
    """
    def action() -> None:
        with open_workspace(config_path, target, prompt_provider, user=user) as (_, selected):
            output = output_dir.expanduser()
            output.mkdir(parents=True, exist_ok=True)
            failed = False
            for item in selected:
                if item.table_status != TableStatus.IDLE:
                    failed = True
                    continue
                local = output / f"{item.address}_{item.port}_{Path(item.path).name}"
                local.write_text(aliases.serialize(item.table, sort_keys=True), encoding="utf-8")
                prompt_provider.success(f"{item}:{item.path} → {local}")
            if failed:
                raise typer.Exit(1)

    _run_guarded(action, "pull alias tables")


def check_run(
    file: Path = typer.Argument(..., help="Local alias file"),
):
    """
    Parse a local alias file and check it can be pushed (no network)
    """
    try:
        table = aliases.parse(file.expanduser().read_text(encoding="utf-8"))
    except (OSError, ParseError) as e:
        _fail(str(e))

    empty = aliases.empty_mailboxes(table)
    if empty:
        _fail(f"Mailboxes without redirections: {', '.join(empty)}")
    prompt_provider.success(f"{file}: {len(table)} mailboxes, ready to push")


# ============================================================
# Writing commands
# ============================================================

def _push_table(
    config_path: str,
    selector: Optional[str],
    user: Optional[str],
    yes: bool,
    edit: Callable[[AliasTable], AliasTable],
) -> None:
    """Fetch one target's table, apply edit, show the changes and push"""
    with open_workspace(config_path, selector, prompt_provider, user=user, need_root=True) as (frontend, selected):
        item = single_target(selected)
        _require_table(item)

        before = {mailbox: list(destinations) for mailbox, destinations in item.table.items()}
        after = edit({mailbox: list(destinations) for mailbox, destinations in before.items()})

        if not _print_diff(before, after):
            prompt_provider.info("No changes to push")
            return
        if not yes and not prompt_provider.confirm(f"Push these changes to {item}?"):
            prompt_provider.warning("Aborted")
            raise typer.Exit(1)

        item.table = after
        frontend.push(item)
        frontend.wait_idle()
        if item.last_error:
            raise typer.Exit(1)


def push_run(
    config_path: str = typer.Argument(..., help="Configuration file path (TOML)"),
    target: str = typer.Argument(..., help="Target (address, address:port or address:port:path)"),
    file: Path = typer.Argument(..., help="Local alias file to install"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
    user: Optional[str] = typer.Option(None, "--user", "-u", help="Login user (default from configuration)"),
):
    """
    Replace a server's alias table with a local file

    Examples:
        forwardsync push config.toml mx1.example.com ./virtual
    """
    def action() -> None:
        table = aliases.parse(file.expanduser().read_text(encoding="utf-8"))
        empty = aliases.empty_mailboxes(table)
        if empty:
            _fail(f"Mailboxes without redirections: {', '.join(empty)}")
        _push_table(config_path, target, user, yes, lambda _: table)

    _run_guarded(action, "push alias table")


def set_run(
    config_path: str = typer.Argument(..., help="Configuration file path (TOML)"),
    target: str = typer.Argument(..., help="Target (address, address:port or address:port:path)"),
    mailbox: str = typer.Argument(..., help="Mailbox to create or replace"),
    destinations: List[str] = typer.Argument(..., help="Redirection destinations"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
    user: Optional[str] = typer.Option(None, "--user", "-u", help="Login user (default from configuration)"),
):
    """
    Create a mailbox or replace all of its redirections
    """
    def edit(table: AliasTable) -> AliasTable:
        aliases.set_destinations(table, mailbox, destinations)
        return table

    _run_guarded(lambda: _push_table(config_path, target, user, yes, edit), "update alias table")


def add_run(
    config_path: str = typer.Argument(..., help="Configuration file path (TOML)"),
    target: str = typer.Argument(..., help="Target (address, address:port or address:port:path)"),
    mailbox: str = typer.Argument(..., help="Mailbox"),
    destination: str = typer.Argument(..., help="Redirection to add"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
    user: Optional[str] = typer.Option(None, "--user", "-u", help="Login user (default from configuration)"),
):
    """
    Add one redirection to a mailbox (creating the mailbox if needed)
    """
    def edit(table: AliasTable) -> AliasTable:
        aliases.add_destination(table, mailbox, destination)
        return table

    _run_guarded(lambda: _push_table(config_path, target, user, yes, edit), "update alias table")


def remove_run(
    config_path: str = typer.Argument(..., help="Configuration file path (TOML)"),
    target: str = typer.Argument(..., help="Target (address, address:port or address:port:path)"),
    mailbox: str = typer.Argument(..., help="Mailbox"),
    destination: Optional[str] = typer.Argument(None, help="Redirection to drop (whole mailbox if omitted)"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
    user: Optional[str] = typer.Option(None, "--user", "-u", help="Login user (default from configuration)"),
):
    """
    Remove a mailbox, or a single redirection from it

    Removing the last redirection of a mailbox is refused; remove the
    mailbox instead.
    """
    def edit(table: AliasTable) -> AliasTable:
        if destination is None:
            if not aliases.remove_mailbox(table, mailbox):
                raise ConfigError(f"Mailbox not found: {mailbox}")
        elif not aliases.remove_destination(table, mailbox, destination):
            raise ConfigError(f"{mailbox} does not redirect to {destination}")
        return table

    _run_guarded(lambda: _push_table(config_path, target, user, yes, edit), "update alias table")


def rename_run(
    config_path: str = typer.Argument(..., help="Configuration file path (TOML)"),
    target: str = typer.Argument(..., help="Target (address, address:port or address:port:path)"),
    old: str = typer.Argument(..., help="Current mailbox"),
    new: str = typer.Argument(..., help="New mailbox"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
    user: Optional[str] = typer.Option(None, "--user", "-u", help="Login user (default from configuration)"),
):
    """
    Rename a mailbox, keeping its redirections
    """
    def edit(table: AliasTable) -> AliasTable:
        try:
            aliases.rename_mailbox(table, old, new)
        except KeyError:
            raise ConfigError(f"Mailbox not found: {old}")
        return table

    _run_guarded(lambda: _push_table(config_path, target, user, yes, edit), "update alias table")
