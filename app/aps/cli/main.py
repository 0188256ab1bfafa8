"""The ``aps`` command: global options and sub-command registration."""

import logging
from typing import Annotated

import typer

from aps import __version__
from aps.cli.commands import init, status, sync, validate

LOG_FORMAT = "%(name)s - %(levelname)s - %(message)s"

app = typer.Typer(
    name="aps",
    help="Sync agent prompts, rules and skills from git and local sources.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)

for command in (init, sync, status, validate):
    app.add_typer(command.app, name=command.__name__.rsplit(".", 1)[-1])


def _show_version(value: bool) -> None:
    if value:
        typer.echo(f"aps version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version", "-V", callback=_show_version, is_eager=True, help="Show version and exit."
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log git commands and install decisions to stderr."),
    ] = False,
) -> None:
    """aps - Agentic Prompt Sync.

    Declare where your AGENTS.md, rules, skills and hooks come from in
    aps.toml and keep this repository's copies in sync.
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format=LOG_FORMAT)


if __name__ == "__main__":
    app()
