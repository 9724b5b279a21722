"""Non-interactive access to git's configured credential helpers.

``git credential fill`` asks whatever helpers the user configured
(credential.helper: cache, store, osxkeychain, manager, ...) for a
username/password matching a URL. Terminal prompts are disabled so an
unattended run never blocks waiting for input; "no helper knows this URL"
comes back as an error instead.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path

from gitup.core.result import Err, Ok, Result
from gitup.platform.process import run as run_process

__all__ = [
    "CredentialHelper",
    "HelperCredential",
    "HelperError",
    "normalize_url",
]

logger = logging.getLogger(__name__)

_HELPER_TIMEOUT_SECONDS = 30.0

# user@host:path (scp-like ssh syntax, no scheme)
_SCP_LIKE = re.compile(r"^(?:(?P<user>[^@/]+)@)?(?P<host>[^:/]+):(?P<path>(?!//).+)$")


@dataclass(frozen=True, slots=True)
class HelperCredential:
    username: str
    password: str


@dataclass(frozen=True, slots=True)
class HelperError:
    """The helper could not produce credentials.

    Attributes:
        message: Diagnostic text from git
        returncode: Exit code of ``git credential fill``
    """

    message: str
    returncode: int = 1


def normalize_url(url: str) -> str:
    """Turn scp-like ``user@host:path`` into ``ssh://user@host/path``.

    git credential only understands URLs with a scheme.
    """
    if "://" in url:
        return url
    match = _SCP_LIKE.match(url)
    if not match:
        return url
    user = match.group("user")
    prefix = f"{user}@" if user else ""
    return f"ssh://{prefix}{match.group('host')}/{match.group('path')}"


def _parse_fill_output(output: str) -> dict[str, str]:
    values: dict[str, str] = {}
    for line in output.splitlines():
        key, sep, value = line.partition("=")
        if sep:
            values[key.strip()] = value
    return values


class CredentialHelper:
    """Runs ``git credential fill`` for a repository.

    Attributes:
        cwd: Directory the helper runs in, so repo-local credential config applies
    """

    def __init__(self, cwd: Path, *, git: str = "git") -> None:
        self.cwd = cwd
        self._git = git

    def fill(self, url: str) -> Result[HelperCredential, HelperError]:
        """Ask the configured helpers for credentials matching ``url``."""
        env = dict(os.environ)
        env["GIT_TERMINAL_PROMPT"] = "0"
        # An askpass program would pop up a dialog.
        env.pop("GIT_ASKPASS", None)
        env.pop("SSH_ASKPASS", None)

        request = f"url={normalize_url(url)}\n\n"
        logger.debug("credential helper: fill %s", url)
        result = run_process(
            [self._git, "credential", "fill"],
            cwd=self.cwd,
            env=env,
            input=request,
            timeout=_HELPER_TIMEOUT_SECONDS,
        )
        match result:
            case Err(e):
                return Err(
                    HelperError(
                        message=e.output or "git credential fill failed",
                        returncode=e.returncode,
                    )
                )
            case Ok(stdout):
                values = _parse_fill_output(stdout)

        username = values.get("username")
        password = values.get("password")
        if not username or password is None:
            return Err(HelperError(message="credential helper returned no username/password"))
        return Ok(HelperCredential(username=username, password=password))
