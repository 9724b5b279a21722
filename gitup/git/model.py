"""Update targets and per-branch outcomes.

A run takes a RepoTarget plus a BranchSpec (branch name -> stash flag) for
every repository, and produces one RepoResult per repository. Every branch of
the BranchSpec gets exactly one BranchOutcome in the result, successful or
not.

Usage:
    result = update_repo(RepoTarget(Path("~/src/app")), {"main": True})
    for branch, outcome in result.outcomes.items():
        match outcome:
            case Success():
                print(f"{branch}: up to date")
            case AuthError(detail=detail):
                print(f"{branch}: {detail}")
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

__all__ = [
    "AuthError",
    "BranchOutcome",
    "BranchSpec",
    "DEFAULT_MAX_WORKERS",
    "DEFAULT_REMOTE",
    "DEFAULT_SSH_USERNAME",
    "InvalidRepo",
    "MergeError",
    "NetworkError",
    "RepoResult",
    "RepoTarget",
    "SshKeyPaths",
    "Success",
    "Unknown",
    "outcome_detail",
    "outcome_kind",
    "summarize",
]

DEFAULT_REMOTE = "origin"

# Username offered for ssh remotes when nothing better is known.
DEFAULT_SSH_USERNAME = "git"

# Repositories updated at the same time.
DEFAULT_MAX_WORKERS = 4

# Branch name -> stash uncommitted changes and merge after fetching.
type BranchSpec = Mapping[str, bool]


@dataclass(frozen=True, slots=True)
class RepoTarget:
    """A local repository and the remote it is synchronized against.

    Attributes:
        path: Repository working directory
        remote: Remote name to fetch from
        username: Preferred username, tried first when the remote asks for one
    """

    path: Path
    remote: str = DEFAULT_REMOTE
    username: str | None = None


@dataclass(frozen=True, slots=True)
class SshKeyPaths:
    """Key pair offered after the ssh agent. Advisory only."""

    public: Path
    private: Path


# -----------------------------------------------------------------------------
# Branch outcomes
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Success:
    pass


@dataclass(frozen=True, slots=True)
class InvalidRepo:
    """The path could not be opened as a repository."""


@dataclass(frozen=True, slots=True)
class NetworkError:
    """Transport or remote-side failure while fetching."""

    detail: str | None = None


@dataclass(frozen=True, slots=True)
class AuthError:
    """No offered credential was accepted by the remote."""

    detail: str | None = None


@dataclass(frozen=True, slots=True)
class MergeError:
    """The fetched branch could not be integrated locally."""

    detail: str | None = None


@dataclass(frozen=True, slots=True)
class Unknown:
    """Anything else; ``detail`` is the underlying message verbatim."""

    detail: str


BranchOutcome = Success | InvalidRepo | NetworkError | AuthError | MergeError | Unknown


def outcome_kind(outcome: BranchOutcome) -> str:
    """Stable display name of an outcome."""
    match outcome:
        case Success():
            return "success"
        case InvalidRepo():
            return "invalid_repo"
        case NetworkError():
            return "network_error"
        case AuthError():
            return "auth_error"
        case MergeError():
            return "merge_error"
        case Unknown():
            return "unknown"


def outcome_detail(outcome: BranchOutcome) -> str | None:
    match outcome:
        case NetworkError(detail=d) | AuthError(detail=d) | MergeError(detail=d):
            return d
        case Unknown(detail=d):
            return d
        case _:
            return None


# -----------------------------------------------------------------------------
# Repository result
# -----------------------------------------------------------------------------


def _empty_outcomes() -> Mapping[str, BranchOutcome]:
    return MappingProxyType({})


@dataclass(frozen=True, slots=True)
class RepoResult:
    """Outcome of updating every requested branch of one repository.

    Attributes:
        path: Repository path
        outcomes: Read-only mapping of branch name -> outcome
        summary: Human-readable one-line summary
    """

    path: Path
    outcomes: Mapping[str, BranchOutcome] = field(default_factory=_empty_outcomes)
    summary: str = ""

    @classmethod
    def build(cls, path: Path, outcomes: Mapping[str, BranchOutcome]) -> RepoResult:
        """Freeze ``outcomes`` and compute the summary."""
        frozen = MappingProxyType(dict(outcomes))
        return cls(path=path, outcomes=frozen, summary=summarize(frozen))

    @property
    def ok(self) -> bool:
        """True if every branch updated."""
        return all(isinstance(o, Success) for o in self.outcomes.values())

    @property
    def failures(self) -> dict[str, BranchOutcome]:
        """Branches whose outcome is not Success."""
        return {b: o for b, o in self.outcomes.items() if not isinstance(o, Success)}


def summarize(outcomes: Mapping[str, BranchOutcome]) -> str:
    """Format e.g. ``"1/2 branches updated (failed: dev=network_error)"``."""
    total = len(outcomes)
    updated = sum(1 for o in outcomes.values() if isinstance(o, Success))
    text = f"{updated}/{total} branches updated"
    failed = [
        f"{branch}={outcome_kind(o)}"
        for branch, o in sorted(outcomes.items())
        if not isinstance(o, Success)
    ]
    if failed:
        text += f" (failed: {', '.join(failed)})"
    return text
