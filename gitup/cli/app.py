from __future__ import annotations

import typer

from gitup import __version__
from gitup.cli.commands.check import check, config_path
from gitup.cli.commands.update import update
from gitup.output.log import configure_logging


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(update)
app.command()(check)
app.command("config-path")(config_path)


@app.callback(invoke_without_command=True)
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log credential and git steps."),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    configure_logging(verbose)


def main() -> None:
    app()
