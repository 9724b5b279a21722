"""Update command - fetch (and optionally merge) configured branches."""

from __future__ import annotations

from pathlib import Path

import typer

from gitup.cli.commands._helpers import exit_with_code, require_git
from gitup.cli.context import build_context
from gitup.core.config import DEFAULT_BRANCH, DEFAULT_REMOTE, AppConfig
from gitup.core.errors import ErrorCode
from gitup.git.model import RepoTarget
from gitup.git.orchestrator import UpdateJob, update_all
from gitup.git.updater import BranchUpdater
from gitup.output.console import Style
from gitup.output.report import print_repo_result, print_run_summary, run_exit_code


def _jobs_from_config(config: AppConfig) -> list[UpdateJob]:
    return [(repo.target(), repo.branch_spec()) for repo in config.repos]


def _jobs_from_paths(
    paths: list[Path],
    branches: list[str],
    *,
    remote: str,
    stash: bool,
) -> list[UpdateJob]:
    spec = {name: stash for name in (branches or [DEFAULT_BRANCH])}
    return [
        (RepoTarget(path=p.expanduser().resolve(), remote=remote), dict(spec)) for p in paths
    ]


def update(
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file (TOML)"),
    repo: list[Path] | None = typer.Option(
        None,
        "--repo",
        "-r",
        help="Update this repository instead of the configured ones (repeatable)",
    ),
    branch: list[str] | None = typer.Option(
        None,
        "--branch",
        "-b",
        help="Branch to update with --repo (repeatable, default: master)",
    ),
    remote: str = typer.Option(DEFAULT_REMOTE, "--remote", help="Remote to fetch from with --repo"),
    stash: bool = typer.Option(
        False,
        "--stash",
        help="With --repo: stash local changes, merge, restore (default: fetch only)",
    ),
    jobs: int | None = typer.Option(
        None,
        "--jobs",
        "-j",
        min=1,
        help="Repositories updated in parallel (default: config max_workers)",
    ),
    branch_jobs: int = typer.Option(
        1,
        "--branch-jobs",
        min=1,
        help="Branches of one repository fetched in parallel",
    ),
) -> None:
    """Fetch every configured branch; report failures per branch."""
    ctx = build_context(config, require_config=not repo)
    if not repo and (branch or stash or remote != DEFAULT_REMOTE):
        ctx.console.error("--branch, --remote and --stash only apply together with --repo")
        ctx.console.print(
            "hint: set branches and remotes per repository in the config file", Style.DIM
        )
        exit_with_code(int(ErrorCode.CONFIG_ERROR))
    require_git(ctx.console)

    if repo:
        update_jobs = _jobs_from_paths(repo, branch or [], remote=remote, stash=stash)
    else:
        update_jobs = _jobs_from_config(ctx.config)

    if not update_jobs:
        ctx.console.warning(f"no repositories configured in {ctx.config_path}")
        return

    results = update_all(
        update_jobs,
        updater=BranchUpdater(ssh_keys=ctx.config.ssh_keys),
        max_workers=jobs or ctx.config.max_workers,
        branch_workers=branch_jobs,
    )

    for result in results:
        print_repo_result(result, ctx.console)
    print_run_summary(results, ctx.console)

    code = run_exit_code(results)
    if code:
        exit_with_code(code)
