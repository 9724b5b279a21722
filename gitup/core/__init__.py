"""Core types: results, exit codes and configuration."""

from .config import AppConfig, ConfigError, RepoConfig, SshKeyPaths, load_config
from .errors import ErrorCode
from .result import Err, Ok, Result

__all__ = [
    # config
    "AppConfig",
    "ConfigError",
    "RepoConfig",
    "SshKeyPaths",
    "load_config",
    # errors
    "ErrorCode",
    # result
    "Err",
    "Ok",
    "Result",
]
