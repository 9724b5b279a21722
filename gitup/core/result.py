"""Result type for explicit error handling.

Infrastructure calls (subprocess, config loading, the credential helper)
return ``Ok(value)`` or ``Err(error)`` instead of raising, so every caller
has to decide what a failure means for the branch it is working on.

Usage:
    match run(["git", "stash", "push"], cwd=repo_path):
        case Ok(stdout):
            ...
        case Err(error):
            print(f"stash failed: {error.stderr}")
"""

from __future__ import annotations

from dataclasses import dataclass

__all__ = ["Err", "Ok", "Result"]


@dataclass(frozen=True, slots=True)
class Ok[T]:
    """Successful result carrying ``value``."""

    value: T


@dataclass(frozen=True, slots=True)
class Err[E]:
    """Failed result carrying ``error``."""

    error: E


type Result[T, E] = Ok[T] | Err[E]
