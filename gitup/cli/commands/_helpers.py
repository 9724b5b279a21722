"""Shared helpers for CLI commands."""

from __future__ import annotations

import shutil
from typing import TYPE_CHECKING, NoReturn

import typer

from gitup.core.errors import ErrorCode
from gitup.core.result import Err, Result
from gitup.output.console import Style

if TYPE_CHECKING:
    from gitup.output.console import ConsoleProtocol


def exit_on_error[T, E](
    result: Result[T, E],
    console: ConsoleProtocol,
    error_code: ErrorCode = ErrorCode.CONFIG_ERROR,
) -> T:
    """Return the Ok value, or print the error and exit.

    Expects error objects to have a 'message' and an optional 'hint' attribute.
    """
    if isinstance(result, Err):
        error = result.error
        message: str = getattr(error, "message", str(error))
        hint: str | None = getattr(error, "hint", None)
        console.error(message)
        if hint:
            console.print(f"hint: {hint}", Style.DIM)
        raise typer.Exit(code=int(error_code))
    return result.value


def require_git(console: ConsoleProtocol) -> None:
    """Exit with ENV_ERROR when the git executable is not on PATH."""
    if shutil.which("git") is None:
        console.error("git executable not found on PATH")
        console.print("hint: stash, merge and credential helpers need git installed", Style.DIM)
        exit_with_code(int(ErrorCode.ENV_ERROR))


def exit_with_code(code: int) -> NoReturn:
    """Exit with given code. Explicit helper for clarity."""
    raise typer.Exit(code=code)
