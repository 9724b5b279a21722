"""Typed configuration loading.

The config file is TOML:

    ssh_pub_key_path = "~/.ssh/id_ed25519.pub"
    ssh_key_path = "~/.ssh/id_ed25519"
    max_workers = 4

    [[repos]]
    path = "~/src/project"
    remote = "origin"
    username = "alice"

    [repos.branches]
    main = true     # stash local changes and merge after fetching
    dev = false     # fetch only

Optional fields fall back to the defaults below.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from gitup.git.model import (
    DEFAULT_MAX_WORKERS,
    DEFAULT_REMOTE,
    DEFAULT_SSH_USERNAME,
    BranchSpec,
    RepoTarget,
    SshKeyPaths,
)
from gitup.platform.paths import user_config_dir

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_int, get_list, get_str, get_table

__all__ = [
    "AppConfig",
    "ConfigError",
    "RepoConfig",
    "SshKeyPaths",
    "default_config_path",
    "load_config",
    "DEFAULT_BRANCH",
    "DEFAULT_REMOTE",
    "DEFAULT_SSH_USERNAME",
    "DEFAULT_MAX_WORKERS",
    "CONFIG_ENV_VAR",
]

# Branch updated when a repo lists no branches.
DEFAULT_BRANCH = "master"

CONFIG_ENV_VAR = "GITUP_CONFIG"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


def _default_branches() -> Mapping[str, bool]:
    return MappingProxyType({DEFAULT_BRANCH: False})


@dataclass(frozen=True, slots=True)
class RepoConfig:
    """Settings for a single repository."""

    path: Path
    remote: str = DEFAULT_REMOTE
    username: str | None = None
    branches: Mapping[str, bool] = field(default_factory=_default_branches)

    def target(self) -> RepoTarget:
        return RepoTarget(path=self.path, remote=self.remote, username=self.username)

    def branch_spec(self) -> BranchSpec:
        return dict(self.branches)


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Main configuration container."""

    repos: tuple[RepoConfig, ...] = ()
    ssh_keys: SshKeyPaths | None = None
    max_workers: int = DEFAULT_MAX_WORKERS

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Result[AppConfig, ConfigError]:
        """Validate a parsed TOML document."""
        repos: list[RepoConfig] = []

        raw_repos = data.get("repos")
        if raw_repos is not None:
            items = get_list(data, "repos")
            if items is None:
                return Err(ConfigError("'repos' must be an array of tables"))
            for index, item in enumerate(items):
                table = as_str_dict(item)
                if table is None:
                    return Err(ConfigError(f"repos[{index}] must be a table"))
                repo = _parse_repo(table, index)
                if isinstance(repo, Err):
                    return repo
                repos.append(repo.value)

        max_workers = DEFAULT_MAX_WORKERS
        if "max_workers" in data:
            value = get_int(data, "max_workers")
            if value is None or value < 1:
                return Err(ConfigError("'max_workers' must be a positive integer"))
            max_workers = value

        pub = get_str(data, "ssh_pub_key_path")
        priv = get_str(data, "ssh_key_path")
        ssh_keys = None
        if pub and priv:
            ssh_keys = SshKeyPaths(
                public=Path(pub).expanduser(),
                private=Path(priv).expanduser(),
            )

        return Ok(cls(repos=tuple(repos), ssh_keys=ssh_keys, max_workers=max_workers))


def _parse_repo(table: StrDict, index: int) -> Result[RepoConfig, ConfigError]:
    path = get_str(table, "path")
    if path is None:
        return Err(ConfigError(f"repos[{index}] is missing 'path'"))

    branches: dict[str, bool] = {}
    if "branches" in table:
        raw = get_table(table, "branches")
        if raw is None:
            return Err(ConfigError(f"repos[{index}].branches must be a table"))
        for name, stash in raw.items():
            if not isinstance(stash, bool):
                return Err(
                    ConfigError(f"repos[{index}].branches.{name} must be true or false")
                )
            branches[name] = stash

    return Ok(
        RepoConfig(
            path=Path(path).expanduser(),
            remote=get_str(table, "remote") or DEFAULT_REMOTE,
            username=get_str(table, "username"),
            branches=MappingProxyType(branches or {DEFAULT_BRANCH: False}),
        )
    )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and syntax errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data = as_str_dict(tomllib.loads(content.decode("utf-8")))
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[AppConfig, ConfigError]:
    """Load and validate configuration from a TOML file.

    Args:
        path: Path to the config file

    Returns:
        Ok(AppConfig) on success, Err(ConfigError) on failure
    """
    parsed = _parse_toml(path)
    if isinstance(parsed, Err):
        return parsed

    result = AppConfig.from_dict(parsed.value)
    if isinstance(result, Err):
        return Err(ConfigError(f"Invalid config: {result.error.message}", path=path))
    return result


def default_config_path() -> Path:
    """Config location: $GITUP_CONFIG, else <user-config-dir>/config.toml."""
    env = os.environ.get(CONFIG_ENV_VAR)
    if env:
        return Path(env).expanduser()
    return user_config_dir() / "config.toml"
