"""
forwardsync command line entry point
"""
from pathlib import Path
from typing import Optional

import typer

from ...core.logging import setup_logging
from .aliases import register_alias_commands

app = typer.Typer(
    name="forwardsync",
    help="View and edit postfix virtual alias tables on remote mail servers",
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)

register_alias_commands(app)


@app.callback()
def main(
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        "-l",
        help="DEBUG shows the shell output of every push step",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Append log records (with thread names) to this file",
    ),
):
    """
    forwardsync - mail forwarding manager

    Every command logs in over SSH, downloads the alias file and, for the
    editing commands, installs the new table with su and verifies it.
    """
    setup_logging(level=log_level, log_file=log_file)


def run():
    app()


if __name__ == "__main__":
    run()
