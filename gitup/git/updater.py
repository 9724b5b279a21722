"""Update a single branch of a single repository.

``BranchUpdater.update_branch`` fetches one branch from a remote through the
credential cascade and, when the branch's stash flag is set, integrates it:

    stash local changes -> merge / fast-forward -> restore the stash

It never raises. Whatever happens is reported as a BranchOutcome, and the
stash taken in step one is restored on every exit path.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path

import pygit2

from gitup.core.result import Err
from gitup.git.credential_helper import CredentialHelper
from gitup.git.credentials import CredentialResolver, CredentialsExhausted, ResolverCallbacks
from gitup.git.model import (
    AuthError,
    BranchOutcome,
    InvalidRepo,
    MergeError,
    NetworkError,
    SshKeyPaths,
    Success,
    Unknown,
)
from gitup.git.repository import Repository, open_repository

__all__ = ["BranchUpdater", "ResolverFactory", "WorkTreeLocks", "fetch_refspec"]

logger = logging.getLogger(__name__)

# (repository path, preferred username) -> resolver for one fetch
type ResolverFactory = Callable[[Path, str | None], CredentialResolver]

_AUTH_MARKERS = ("authentication", "credential", "permission denied (publickey")


def fetch_refspec(remote: str, branch: str) -> str:
    return f"+refs/heads/{branch}:refs/remotes/{remote}/{branch}"


class WorkTreeLocks:
    """One lock per repository for steps that touch the working tree.

    Fetches do not take it; stash, merge and stash pop do.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[Path, threading.Lock] = {}

    def lock_for(self, path: Path) -> threading.Lock:
        key = path.resolve()
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, path: Path) -> Iterator[None]:
        with self.lock_for(path):
            yield


class BranchUpdater:
    """Fetches (and optionally merges) one branch at a time.

    Safe to share between threads: every call builds its own resolver, and
    working-tree steps are serialized per repository through ``locks``.
    """

    def __init__(
        self,
        *,
        ssh_keys: SshKeyPaths | None = None,
        locks: WorkTreeLocks | None = None,
        resolver_factory: ResolverFactory | None = None,
    ) -> None:
        self._ssh_keys = ssh_keys
        self._locks = locks or WorkTreeLocks()
        self._resolver_factory = resolver_factory or self._default_resolver

    def _default_resolver(self, path: Path, username: str | None) -> CredentialResolver:
        return CredentialResolver(
            username=username,
            helper=CredentialHelper(path),
            ssh_keys=self._ssh_keys,
        )

    def update_branch(
        self,
        repo_path: Path,
        remote_name: str,
        branch_name: str,
        stash: bool,
        *,
        username: str | None = None,
    ) -> BranchOutcome:
        """Fetch ``branch_name`` from ``remote_name``; integrate it if ``stash``.

        Args:
            repo_path: Repository working directory
            remote_name: Remote to fetch from
            branch_name: Branch to update
            stash: Stash local changes, merge, then restore them
            username: Preferred username for the credential cascade

        Returns:
            The branch outcome; never raises
        """
        try:
            outcome = self.fetch(repo_path, remote_name, branch_name, username=username)
            if not isinstance(outcome, Success) or not stash:
                return outcome
            with self._locks.hold(repo_path):
                return self.integrate(Repository(repo_path), remote_name, branch_name)
        except Exception as e:  # noqa: BLE001
            logger.debug("unexpected failure updating %s", branch_name, exc_info=True)
            return Unknown(str(e) or type(e).__name__)

    # -------------------------------------------------------------------------
    # Fetch
    # -------------------------------------------------------------------------

    def fetch(
        self,
        repo_path: Path,
        remote_name: str,
        branch_name: str,
        *,
        username: str | None = None,
    ) -> BranchOutcome:
        repo = open_repository(repo_path)
        if repo is None:
            return InvalidRepo()

        try:
            remote = repo.remotes[remote_name]
        except (KeyError, ValueError):
            return Unknown(f"remote '{remote_name}' not found")

        url = remote.url or ""
        resolver = self._resolver_factory(repo_path, username)
        logger.debug("fetching %s/%s from %s", remote_name, branch_name, url)
        try:
            remote.fetch(
                [fetch_refspec(remote_name, branch_name)],
                callbacks=ResolverCallbacks(resolver),
            )
        except CredentialsExhausted as e:
            return AuthError(e.failure.message)
        except pygit2.GitError as e:
            message = str(e)
            if any(marker in message.lower() for marker in _AUTH_MARKERS):
                return AuthError(f"{message} ({resolver.describe_failure(url)})")
            return NetworkError(message)
        except OSError as e:
            return NetworkError(str(e))

        resolver.mark_accepted()
        # libgit2 skips a refspec whose source is missing on the remote.
        if repo.references.get(f"refs/remotes/{remote_name}/{branch_name}") is None:
            return Unknown(f"branch '{branch_name}' not found on {remote_name}")
        logger.debug(
            "fetched %s/%s, credentials offered: %s",
            remote_name,
            branch_name,
            [f"{a.kind}:{a.identity}" for a in resolver.attempts] or "none",
        )
        return Success()

    # -------------------------------------------------------------------------
    # Integrate
    # -------------------------------------------------------------------------

    def integrate(self, repo: Repository, remote_name: str, branch_name: str) -> BranchOutcome:
        """Stash, bring ``branch_name`` up to its remote-tracking ref, restore.

        The caller holds the working-tree lock for ``repo``.
        """
        stashed = repo.stash_push(f"gitup: before updating {branch_name}")
        if isinstance(stashed, Err):
            return MergeError(f"could not stash local changes: {stashed.error.message}")
        if stashed.value:
            logger.debug("stashed local changes in %s", repo.path)

        outcome: BranchOutcome = Unknown("integration did not complete")
        try:
            outcome = self._integrate(repo, remote_name, branch_name)
        finally:
            if stashed.value:
                restored = repo.stash_pop()
                if isinstance(restored, Err):
                    outcome = MergeError(
                        f"could not restore stashed changes ({restored.error.message}); "
                        "they are kept in the stash"
                    )
                else:
                    logger.debug("restored stashed changes in %s", repo.path)
        return outcome

    def _integrate(self, repo: Repository, remote_name: str, branch_name: str) -> BranchOutcome:
        tracking = f"refs/remotes/{remote_name}/{branch_name}"
        upstream = repo.rev_parse(tracking)
        if upstream is None:
            return Unknown(f"{remote_name}/{branch_name} missing after fetch")

        if repo.current_branch() == branch_name:
            merged = repo.merge(tracking)
            if isinstance(merged, Err):
                aborted = repo.merge_abort()
                if isinstance(aborted, Err):
                    logger.debug("merge --abort failed: %s", aborted.error.message)
                return MergeError(merged.error.message)
            return Success()

        local_ref = f"refs/heads/{branch_name}"
        local = repo.rev_parse(local_ref)
        if local is None:
            created = repo.create_branch(branch_name, f"{remote_name}/{branch_name}")
            if isinstance(created, Err):
                return MergeError(created.error.message)
            return Success()

        if local == upstream or repo.is_ancestor(upstream, local):
            return Success()
        if not repo.is_ancestor(local, upstream):
            return MergeError(
                f"{branch_name} has diverged from {remote_name}/{branch_name}; "
                "check it out to merge"
            )

        moved = repo.update_ref(local_ref, upstream, local)
        if isinstance(moved, Err):
            return MergeError(moved.error.message)
        return Success()
