"""Exit codes for the gitup CLI.

A run always finishes every configured repository, so there is only one
fatal error class (bad configuration). Everything else is reported per branch
and folded into ``UPDATE_FAILED`` at the very end.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Process exit codes. The numeric values are stable.

    - 0: every branch of every repository updated
    - 1: configuration error (missing/invalid config file, bad arguments)
    - 2: environment error (git executable missing)
    - 3: at least one branch failed to update; ``gitup check`` reuses it when a
      configured path is not a repository
    """

    OK = 0
    CONFIG_ERROR = 1
    ENV_ERROR = 2
    UPDATE_FAILED = 3

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")
