"""Git repository access.

Two engines are involved:
- libgit2 (through pygit2) opens repositories and performs fetches, because
  its credential callback is what the credential cascade plugs into.
- the ``git`` executable performs the working-tree steps (stash, merge,
  ref updates), so hooks, attributes and merge drivers behave exactly as
  they do for the user.

All working-tree operations return Result types.

Usage:
    if not is_valid_repository(path):
        ...
    repo = Repository(path)
    match repo.stash_push("gitup: main"):
        case Ok(stashed):
            ...
        case Err(e):
            print(f"stash failed: {e.message}")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import pygit2
from pygit2.enums import RepositoryOpenFlag

from gitup.core.result import Err, Ok, Result
from gitup.platform.process import ProcessError
from gitup.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 60.0

__all__ = [
    "GitError",
    "Repository",
    "is_valid_repository",
    "open_repository",
]

logger = logging.getLogger(__name__)


def open_repository(path: Path) -> pygit2.Repository | None:
    """Open ``path`` with libgit2, or None if it is not a usable repository."""
    try:
        # NO_SEARCH: a subdirectory of some other checkout is not a repository.
        return pygit2.Repository(str(path), RepositoryOpenFlag.NO_SEARCH)
    except (pygit2.GitError, OSError, KeyError, ValueError) as e:
        logger.debug("cannot open %s as a repository: %s", path, e)
        return None


def is_valid_repository(path: Path) -> bool:
    """Check that ``path`` opens as a repository. No side effects."""
    return open_repository(path) is not None


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git command that failed
        message: Error message
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


class Repository:
    """Working-tree operations on a single repository.

    Attributes:
        path: Path to the repository working directory
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def is_clean(self) -> bool:
        """True if there is nothing to stash (untracked files count as changes).

        Returns False if status cannot be determined.
        """
        result = self._run(["status", "--porcelain"])
        match result:
            case Ok(stdout):
                return stdout.strip() == ""
            case Err(_):
                return False

    def current_branch(self) -> str | None:
        """Checked-out branch name, None on detached HEAD or error."""
        result = self._run(["rev-parse", "--abbrev-ref", "HEAD"])
        match result:
            case Ok(stdout):
                branch = stdout.strip()
                return None if branch == "HEAD" else branch
            case Err(_):
                return None

    def rev_parse(self, ref: str) -> str | None:
        """Resolve ``ref`` to a commit sha, None if it does not exist."""
        result = self._run(["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"])
        match result:
            case Ok(stdout):
                return stdout.strip() or None
            case Err(_):
                return None

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        return isinstance(self._run(["merge-base", "--is-ancestor", ancestor, descendant]), Ok)

    def stash_push(self, message: str) -> Result[bool, GitError]:
        """Stash tracked and untracked changes.

        Returns:
            Ok(True) if a stash entry was created, Ok(False) if the tree was clean
        """
        if self.is_clean():
            return Ok(False)

        before = self.rev_parse("refs/stash")
        result = self._run(["stash", "push", "--include-untracked", "-m", message])
        if isinstance(result, Err):
            return Err(self._error("stash push", result.error))

        after = self.rev_parse("refs/stash")
        return Ok(after is not None and after != before)

    def stash_pop(self) -> Result[str, GitError]:
        """Restore the most recent stash entry."""
        result = self._run(["stash", "pop"])
        match result:
            case Err(e):
                return Err(self._error("stash pop", e))
            case Ok(stdout):
                return Ok(stdout.strip())

    def merge(self, ref: str) -> Result[str, GitError]:
        """Merge ``ref`` into the checked-out branch."""
        result = self._run(["merge", "--no-edit", ref])
        match result:
            case Err(e):
                return Err(self._error("merge", e))
            case Ok(stdout):
                return Ok(stdout.strip())

    def merge_abort(self) -> Result[str, GitError]:
        result = self._run(["merge", "--abort"])
        match result:
            case Err(e):
                return Err(self._error("merge --abort", e))
            case Ok(stdout):
                return Ok(stdout.strip())

    def create_branch(self, branch: str, start: str) -> Result[str, GitError]:
        """Create local ``branch`` tracking ``start`` (e.g. origin/dev)."""
        result = self._run(["branch", "--track", branch, start])
        match result:
            case Err(e):
                return Err(self._error("branch", e))
            case Ok(stdout):
                return Ok(stdout.strip())

    def update_ref(self, ref: str, new: str, old: str) -> Result[str, GitError]:
        """Move ``ref`` from ``old`` to ``new`` (refuses if it moved meanwhile)."""
        result = self._run(["update-ref", "-m", "gitup: fast-forward", ref, new, old])
        match result:
            case Err(e):
                return Err(self._error("update-ref", e))
            case Ok(stdout):
                return Ok(stdout.strip())

    def _error(self, command: str, e: ProcessError) -> GitError:
        return GitError(
            command=command,
            message=e.output or f"git {command} failed",
            returncode=e.returncode,
        )

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        """Run a git command in this repository."""
        return run_process(
            ["git", "-C", str(self.path), *args],
            cwd=self.path,
            timeout=_GIT_TIMEOUT_SECONDS,
        )
