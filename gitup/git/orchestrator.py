"""Multi-branch and multi-repository updates.

``update_repo`` updates every branch of one repository and always returns a
RepoResult with exactly one outcome per requested branch. ``update_all`` does
that for many repositories in a bounded thread pool.

Usage:
    from gitup.git.orchestrator import update_all

    results = update_all([(RepoTarget(path), {"main": True})], max_workers=4)
    for result in results:
        print(f"{result.path.name}: {result.summary}")
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

from gitup.git.model import (
    DEFAULT_MAX_WORKERS,
    BranchOutcome,
    BranchSpec,
    InvalidRepo,
    RepoResult,
    RepoTarget,
    Unknown,
)
from gitup.git.repository import is_valid_repository
from gitup.git.updater import BranchUpdater

__all__ = ["UpdateJob", "update_all", "update_repo"]

logger = logging.getLogger(__name__)

type UpdateJob = tuple[RepoTarget, BranchSpec]


def update_repo(
    target: RepoTarget,
    branches: BranchSpec,
    *,
    updater: BranchUpdater | None = None,
    branch_workers: int = 1,
) -> RepoResult:
    """Update every branch in ``branches`` for one repository.

    An invalid repository marks every branch InvalidRepo without touching the
    network. Otherwise each branch is attempted independently: one failure
    never prevents the others.

    Args:
        target: Repository and remote
        branches: Branch name -> stash flag
        updater: Branch updater to use (a fresh one by default)
        branch_workers: Branches fetched concurrently

    Returns:
        RepoResult whose branch set equals ``branches``
    """
    if not is_valid_repository(target.path):
        logger.warning("invalid repo supplied at %s", target.path)
        return RepoResult.build(target.path, {branch: InvalidRepo() for branch in branches})

    updater = updater or BranchUpdater()

    def run_one(branch: str) -> BranchOutcome:
        logger.debug("starting to update %s/%s in %s", target.remote, branch, target.path)
        try:
            return updater.update_branch(
                target.path,
                target.remote,
                branch,
                branches[branch],
                username=target.username,
            )
        except Exception as e:  # noqa: BLE001
            return Unknown(str(e) or type(e).__name__)

    names = list(branches)
    if branch_workers > 1 and len(names) > 1:
        with ThreadPoolExecutor(max_workers=min(branch_workers, len(names))) as pool:
            outcomes = dict(zip(names, pool.map(run_one, names)))
    else:
        outcomes = {branch: run_one(branch) for branch in names}

    return RepoResult.build(target.path, outcomes)


def update_all(
    jobs: Sequence[UpdateJob],
    *,
    updater: BranchUpdater | None = None,
    max_workers: int = DEFAULT_MAX_WORKERS,
    branch_workers: int = 1,
) -> list[RepoResult]:
    """Update many repositories concurrently.

    Every repository is attempted regardless of earlier failures.

    Returns:
        One RepoResult per job, in input order
    """
    updater = updater or BranchUpdater()

    def run_job(job: UpdateJob) -> RepoResult:
        target, branches = job
        return update_repo(target, branches, updater=updater, branch_workers=branch_workers)

    if max_workers <= 1 or len(jobs) <= 1:
        return [run_job(job) for job in jobs]

    with ThreadPoolExecutor(max_workers=min(max_workers, len(jobs))) as pool:
        return list(pool.map(run_job, jobs))
