"""Run report and exit code.

Centralized formatting of per-branch outcomes for consistent UX.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from gitup.core.errors import ErrorCode
from gitup.git.model import (
    AuthError,
    BranchOutcome,
    InvalidRepo,
    MergeError,
    NetworkError,
    RepoResult,
    Success,
    Unknown,
    outcome_detail,
    outcome_kind,
)
from gitup.output.console import Style

if TYPE_CHECKING:
    from gitup.output.console import ConsoleProtocol

__all__ = ["describe_outcome", "print_repo_result", "print_run_summary", "run_exit_code"]


def describe_outcome(outcome: BranchOutcome) -> str:
    """Short human description of an outcome kind."""
    match outcome:
        case Success():
            return "updated"
        case InvalidRepo():
            return "not a git repository"
        case NetworkError():
            return "fetch failed"
        case AuthError():
            return "authentication failed"
        case MergeError():
            return "merge failed"
        case Unknown():
            return "unexpected error"


def print_repo_result(result: RepoResult, console: ConsoleProtocol) -> None:
    """Print one line per branch; failures get their kind and detail."""
    console.header(str(result.path))
    for branch in sorted(result.outcomes):
        outcome = result.outcomes[branch]
        if isinstance(outcome, Success):
            console.success(branch)
            continue
        console.error(f"{branch}: {outcome_kind(outcome)} ({describe_outcome(outcome)})")
        detail = outcome_detail(outcome)
        if detail:
            console.print(detail, Style.DIM)


def print_run_summary(results: Sequence[RepoResult], console: ConsoleProtocol) -> None:
    total = sum(len(r.outcomes) for r in results)
    failed = sum(len(r.failures) for r in results)
    console.newline()
    text = f"{total - failed}/{total} branches updated across {len(results)} repositories"
    if failed:
        console.print(text, Style.WARNING)
    else:
        console.print(text, Style.SUCCESS)


def run_exit_code(results: Sequence[RepoResult]) -> int:
    """0 if every branch of every repository updated."""
    if all(r.ok for r in results):
        return int(ErrorCode.OK)
    return int(ErrorCode.UPDATE_FAILED)
