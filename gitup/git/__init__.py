"""Git operations module.

This module provides the update pipeline:
- model: targets, branch outcomes and repository results
- credentials: the credential cascade offered to libgit2
- updater: fetch / stash / merge for one branch
- orchestrator: every branch of a repository, every repository of a run

Usage:
    from gitup.git import RepoTarget, update_repo

    result = update_repo(RepoTarget(Path("~/src/app").expanduser()), {"main": True})
    print(result.summary)
"""

from gitup.git.model import (
    AuthError,
    BranchOutcome,
    BranchSpec,
    InvalidRepo,
    MergeError,
    NetworkError,
    RepoResult,
    RepoTarget,
    SshKeyPaths,
    Success,
    Unknown,
    outcome_detail,
    outcome_kind,
)
from gitup.git.credentials import (
    CredentialAttempt,
    CredentialKind,
    CredentialResolver,
    CredentialsExhausted,
    ResolverCallbacks,
)
from gitup.git.repository import GitError, Repository, is_valid_repository
from gitup.git.updater import BranchUpdater, WorkTreeLocks
from gitup.git.orchestrator import update_all, update_repo

__all__ = [
    # Model
    "AuthError",
    "BranchOutcome",
    "BranchSpec",
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
    # Credentials
    "CredentialAttempt",
    "CredentialKind",
    "CredentialResolver",
    "CredentialsExhausted",
    "ResolverCallbacks",
    # Repository
    "GitError",
    "Repository",
    "is_valid_repository",
    # Update
    "BranchUpdater",
    "WorkTreeLocks",
    "update_all",
    "update_repo",
]
