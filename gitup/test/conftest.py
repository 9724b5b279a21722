"""Shared fixtures: throwaway git repositories in tmp_path."""

from __future__ import annotations

import shutil
from pathlib import Path

import pytest

from gitup.test.git_helpers import RemoteSetup, make_remote_setup


@pytest.fixture
def remote_setup(tmp_path: Path) -> RemoteSetup:
    """Bare remote with master and dev, plus a local clone on master."""
    if shutil.which("git") is None:
        pytest.skip("git not available")
    return make_remote_setup(tmp_path)
