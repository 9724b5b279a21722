"""Tests for gitup.git.orchestrator module."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from gitup.git.credentials import CredentialResolver
from gitup.git.model import (
    BranchOutcome,
    InvalidRepo,
    NetworkError,
    RepoTarget,
    Success,
    Unknown,
)
from gitup.git.orchestrator import update_all, update_repo
from gitup.git.updater import BranchUpdater
from gitup.test.git_helpers import RemoteSetup, git, requires_git


def _fake_updater(outcomes: dict[str, BranchOutcome] | None = None) -> MagicMock:
    outcomes = outcomes or {}
    updater = MagicMock(spec=BranchUpdater)

    def update_branch(
        path: Path, remote: str, branch: str, stash: bool, *, username: str | None = None
    ) -> BranchOutcome:
        return outcomes.get(branch, Success())

    updater.update_branch.side_effect = update_branch
    return updater


@pytest.fixture
def valid_repo() -> Iterator[None]:
    with patch("gitup.git.orchestrator.is_valid_repository", return_value=True):
        yield


class TestUpdateRepo:
    def test_invalid_repository_marks_every_branch(self) -> None:
        updater = _fake_updater()

        result = update_repo(RepoTarget(path=Path("/")), {"master": True}, updater=updater)

        assert dict(result.outcomes) == {"master": InvalidRepo()}
        updater.update_branch.assert_not_called()

    def test_invalid_repository_many_branches(self, tmp_path: Path) -> None:
        result = update_repo(
            RepoTarget(path=tmp_path), {"main": False, "dev": True}, updater=_fake_updater()
        )
        assert dict(result.outcomes) == {"main": InvalidRepo(), "dev": InvalidRepo()}
        assert not result.ok

    @pytest.mark.usefixtures("valid_repo")
    def test_every_branch_attempted_after_failure(self) -> None:
        updater = _fake_updater({"main": NetworkError("down"), "dev": NetworkError("down")})

        result = update_repo(
            RepoTarget(path=Path("/src/app")), {"main": False, "dev": False}, updater=updater
        )

        assert dict(result.outcomes) == {
            "main": NetworkError("down"),
            "dev": NetworkError("down"),
        }
        assert updater.update_branch.call_count == 2

    @pytest.mark.usefixtures("valid_repo")
    def test_passes_target_and_stash_flag(self) -> None:
        updater = _fake_updater()
        target = RepoTarget(path=Path("/src/app"), remote="upstream", username="alice")

        update_repo(target, {"main": True}, updater=updater)

        updater.update_branch.assert_called_once_with(
            Path("/src/app"), "upstream", "main", True, username="alice"
        )

    @pytest.mark.usefixtures("valid_repo")
    def test_exception_becomes_unknown(self) -> None:
        updater = MagicMock(spec=BranchUpdater)
        updater.update_branch.side_effect = RuntimeError("boom")

        result = update_repo(RepoTarget(path=Path("/src/app")), {"main": False}, updater=updater)

        assert dict(result.outcomes) == {"main": Unknown("boom")}

    @pytest.mark.usefixtures("valid_repo")
    def test_outcomes_cover_requested_branches(self) -> None:
        branches = {f"b{i}": False for i in range(6)}

        result = update_repo(
            RepoTarget(path=Path("/src/app")),
            branches,
            updater=_fake_updater({"b3": NetworkError()}),
            branch_workers=3,
        )

        assert set(result.outcomes) == set(branches)
        assert result.summary == "5/6 branches updated (failed: b3=network_error)"

    @pytest.mark.usefixtures("valid_repo")
    def test_empty_branch_spec(self) -> None:
        result = update_repo(RepoTarget(path=Path("/src/app")), {}, updater=_fake_updater())
        assert dict(result.outcomes) == {}
        assert result.summary == "0/0 branches updated"


class TestUpdateAll:
    @pytest.mark.usefixtures("valid_repo")
    def test_results_in_input_order(self) -> None:
        paths = [Path(f"/src/repo{i}") for i in range(5)]
        jobs = [(RepoTarget(path=p), {"main": False}) for p in paths]

        results = update_all(jobs, updater=_fake_updater(), max_workers=3)

        assert [r.path for r in results] == paths

    @pytest.mark.usefixtures("valid_repo")
    def test_runs_concurrently(self) -> None:
        barrier = threading.Barrier(2, timeout=5)
        updater = MagicMock(spec=BranchUpdater)

        def update_branch(*args: object, **kwargs: object) -> BranchOutcome:
            barrier.wait()
            return Success()

        updater.update_branch.side_effect = update_branch
        jobs = [(RepoTarget(path=Path(f"/src/r{i}")), {"main": False}) for i in range(2)]

        results = update_all(jobs, updater=updater, max_workers=2)

        assert all(r.ok for r in results)

    def test_failures_do_not_stop_other_repositories(self, tmp_path: Path) -> None:
        jobs = [
            (RepoTarget(path=tmp_path / "missing"), {"main": False}),
            (RepoTarget(path=tmp_path / "also-missing"), {"dev": False}),
        ]

        results = update_all(jobs, updater=_fake_updater(), max_workers=1)

        assert [dict(r.outcomes) for r in results] == [
            {"main": InvalidRepo()},
            {"dev": InvalidRepo()},
        ]

    def test_no_jobs(self) -> None:
        assert update_all([], updater=_fake_updater()) == []


@requires_git
class TestEndToEnd:
    """Real repositories, real fetches over file://."""

    def _updater(self) -> BranchUpdater:
        return BranchUpdater(
            resolver_factory=lambda path, username: CredentialResolver(
                username=username, os_user=lambda: None
            )
        )

    def test_update_two_branches(self, remote_setup: RemoteSetup) -> None:
        sha = remote_setup.push_change("hello.txt", "v2\n")

        result = update_repo(
            RepoTarget(path=remote_setup.clone),
            {"master": True, "dev": True},
            updater=self._updater(),
        )

        assert result.ok
        assert result.summary == "2/2 branches updated"
        assert git(remote_setup.clone, "rev-parse", "HEAD") == sha

    def test_unreachable_remote_fails_each_branch(
        self, remote_setup: RemoteSetup, tmp_path: Path
    ) -> None:
        git(remote_setup.clone, "remote", "set-url", "origin", (tmp_path / "gone.git").as_uri())

        result = update_repo(
            RepoTarget(path=remote_setup.clone),
            {"master": False, "dev": False},
            updater=self._updater(),
            branch_workers=2,
        )

        assert set(result.outcomes) == {"master", "dev"}
        assert all(isinstance(o, NetworkError) for o in result.outcomes.values())
