"""Check command - validate configured repositories without touching the network."""

from __future__ import annotations

from pathlib import Path

import typer

from gitup.cli.commands._helpers import exit_with_code
from gitup.cli.context import build_context
from gitup.core.errors import ErrorCode
from gitup.git.repository import is_valid_repository
from gitup.output.console import Style


def check(
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file (TOML)"),
) -> None:
    """Verify that every configured path opens as a git repository.

    Exits with code 3, the update-failure code, if any path is invalid.
    """
    ctx = build_context(config)

    invalid = 0
    for repo in ctx.config.repos:
        branches = ", ".join(sorted(repo.branches))
        if is_valid_repository(repo.path):
            ctx.console.success(f"{repo.path} ({repo.remote}: {branches})")
        else:
            invalid += 1
            ctx.console.error(f"{repo.path}: not a git repository")

    if not ctx.config.repos:
        ctx.console.warning(f"no repositories configured in {ctx.config_path}")
    elif invalid:
        ctx.console.print(f"{invalid} of {len(ctx.config.repos)} invalid", Style.WARNING)
        exit_with_code(int(ErrorCode.UPDATE_FAILED))


def config_path(
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file (TOML)"),
) -> None:
    """Print the config file location gitup reads."""
    from gitup.core.config import default_config_path

    typer.echo(str(config or default_config_path()))
