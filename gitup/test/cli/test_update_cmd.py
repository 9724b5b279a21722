from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import typer

from gitup.cli.context import CLIContext
from gitup.core.config import AppConfig, RepoConfig
from gitup.core.errors import ErrorCode
from gitup.git.model import NetworkError, RepoResult, RepoTarget, Success
from gitup.git.orchestrator import UpdateJob
from gitup.output.console import MockConsole


def _ctx(tmp_path: Path, config: AppConfig) -> CLIContext:
    return CLIContext(config=config, config_path=tmp_path / "config.toml", console=MockConsole())


class FakeRun:
    """Stands in for update_all; records the jobs it was given."""

    def __init__(self, failing: set[str] | None = None) -> None:
        self.failing = failing or set()
        self.jobs: list[UpdateJob] = []
        self.kwargs: dict[str, Any] = {}

    def __call__(self, jobs: list[UpdateJob], **kwargs: Any) -> list[RepoResult]:
        self.jobs = list(jobs)
        self.kwargs = kwargs
        return [
            RepoResult.build(
                target.path,
                {b: NetworkError("down") if b in self.failing else Success() for b in branches},
            )
            for target, branches in jobs
        ]


def _run_update(
    monkeypatch: pytest.MonkeyPatch,
    ctx: CLIContext,
    fake: FakeRun,
    **options: Any,
) -> None:
    import gitup.cli.commands.update as update_cmd

    monkeypatch.setattr(update_cmd, "build_context", lambda *_, **__: ctx)
    monkeypatch.setattr(update_cmd, "require_git", lambda console: None)
    monkeypatch.setattr(update_cmd, "update_all", fake)

    args: dict[str, Any] = {
        "config": None,
        "repo": None,
        "branch": None,
        "remote": "origin",
        "stash": False,
        "jobs": None,
        "branch_jobs": 1,
    }
    args.update(options)
    update_cmd.update(**args)


def test_update_configured_repos(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    repo = RepoConfig(path=tmp_path / "app", username="alice", branches={"main": True})
    ctx = _ctx(tmp_path, AppConfig(repos=(repo,), max_workers=2))
    fake = FakeRun()

    _run_update(monkeypatch, ctx, fake)

    assert fake.jobs == [(RepoTarget(path=repo.path, username="alice"), {"main": True})]
    assert fake.kwargs["max_workers"] == 2
    assert isinstance(ctx.console, MockConsole)
    assert ctx.console.find("OK main")
    assert ctx.console.find("1/1 branches updated across 1 repositories")


def test_update_failure_exits_nonzero(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    repo = RepoConfig(path=tmp_path / "app", branches={"main": False, "dev": False})
    ctx = _ctx(tmp_path, AppConfig(repos=(repo,)))

    with pytest.raises(typer.Exit) as exc:
        _run_update(monkeypatch, ctx, FakeRun(failing={"dev"}))

    assert exc.value.exit_code == int(ErrorCode.UPDATE_FAILED)
    assert isinstance(ctx.console, MockConsole)
    assert ctx.console.find("error: dev: network_error (fetch failed)")
    assert ctx.console.find("OK main")


def test_update_explicit_repos(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    ctx = _ctx(tmp_path, AppConfig())
    fake = FakeRun()

    _run_update(
        monkeypatch,
        ctx,
        fake,
        repo=[tmp_path / "one", tmp_path / "two"],
        branch=["main", "dev"],
        remote="upstream",
        stash=True,
        jobs=3,
        branch_jobs=2,
    )

    assert [target for target, _ in fake.jobs] == [
        RepoTarget(path=(tmp_path / "one").resolve(), remote="upstream"),
        RepoTarget(path=(tmp_path / "two").resolve(), remote="upstream"),
    ]
    assert all(dict(branches) == {"main": True, "dev": True} for _, branches in fake.jobs)
    assert fake.kwargs["max_workers"] == 3
    assert fake.kwargs["branch_workers"] == 2


def test_update_explicit_repo_defaults_to_master(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    ctx = _ctx(tmp_path, AppConfig())
    fake = FakeRun()

    _run_update(monkeypatch, ctx, fake, repo=[tmp_path])

    assert [dict(branches) for _, branches in fake.jobs] == [{"master": False}]


def test_update_without_repos_warns(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    ctx = _ctx(tmp_path, AppConfig())
    fake = FakeRun()

    _run_update(monkeypatch, ctx, fake)

    assert fake.jobs == []
    assert isinstance(ctx.console, MockConsole)
    assert ctx.console.find("no repositories configured")


@pytest.mark.parametrize(
    "options",
    [{"branch": ["main"]}, {"stash": True}, {"remote": "upstream"}],
)
def test_repo_only_options_need_repo(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, options: dict[str, Any]
) -> None:
    repo = RepoConfig(path=tmp_path / "app")
    ctx = _ctx(tmp_path, AppConfig(repos=(repo,)))
    fake = FakeRun()

    with pytest.raises(typer.Exit) as exc:
        _run_update(monkeypatch, ctx, fake, **options)

    assert exc.value.exit_code == int(ErrorCode.CONFIG_ERROR)
    assert fake.jobs == []
    assert isinstance(ctx.console, MockConsole)
    assert ctx.console.find("only apply together with --repo")
