"""Credential negotiation for fetches.

libgit2 does not know in advance which kind of credential a remote will take.
During one fetch it calls back once per handshake round with the set of kinds
acceptable for that round, and calls again whenever the previous offer was
rejected. CredentialResolver answers those rounds with an ordered cascade:

1. username requested: pop the next candidate of
   [repo username, OS user, credential-helper username, "git"]
2. ssh key requested: the ssh agent, once per username; then the configured
   key files, once per username
3. username/password requested: the git credential helper, once
4. default credential requested: the engine's own default, once
5. otherwise: give up with an AuthFailure

A resolver lives for exactly one fetch. It remembers what it already offered
so a remote that keeps rejecting can never make it loop.

Usage:
    resolver = CredentialResolver(username="alice", helper=CredentialHelper(repo_path))
    remote.fetch(refspecs, callbacks=ResolverCallbacks(resolver))
    resolver.mark_accepted()
"""

from __future__ import annotations

import dataclasses
import getpass
import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from enum import Enum

import pygit2
from pygit2.enums import CredentialType
from pygit2.errors import Passthrough

from gitup.core.result import Err, Ok, Result
from gitup.git.credential_helper import CredentialHelper, HelperCredential, HelperError
from gitup.git.model import DEFAULT_SSH_USERNAME, SshKeyPaths

__all__ = [
    "AuthFailure",
    "Credential",
    "CredentialAttempt",
    "CredentialKind",
    "CredentialResolver",
    "CredentialsExhausted",
    "ResolverCallbacks",
]

logger = logging.getLogger(__name__)

type Credential = pygit2.Username | pygit2.UserPass | pygit2.Keypair


class CredentialKind(Enum):
    USERNAME = "username"
    SSH_AGENT = "ssh-agent"
    SSH_KEY_FILE = "ssh-key-file"
    CREDENTIAL_HELPER = "credential-helper"
    DEFAULT = "default"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class CredentialAttempt:
    """One credential offered to the remote.

    Attributes:
        kind: Which strategy produced it
        identity: Username used ("" for the engine default)
        accepted: True once the fetch went through with it
    """

    kind: CredentialKind
    identity: str
    accepted: bool = False


@dataclass(frozen=True, slots=True)
class AuthFailure:
    """The cascade ran out of credentials to offer."""

    url: str
    message: str


class CredentialsExhausted(Exception):
    """Raised from the libgit2 callback to abort the fetch."""

    def __init__(self, failure: AuthFailure) -> None:
        super().__init__(failure.message)
        self.failure = failure


def _os_user() -> str | None:
    try:
        return getpass.getuser()
    except (OSError, KeyError):
        return None


def _describe_allowed(allowed: CredentialType) -> str:
    names = [t.name.lower() for t in CredentialType if t in allowed and t.name]
    return ", ".join(names) or "none"


class CredentialResolver:
    """Stateful credential cascade for one fetch negotiation."""

    def __init__(
        self,
        *,
        username: str | None = None,
        helper: CredentialHelper | None = None,
        ssh_keys: SshKeyPaths | None = None,
        os_user: Callable[[], str | None] = _os_user,
    ) -> None:
        self._config_username = username
        self._helper = helper
        self._ssh_keys = ssh_keys
        self._os_user = os_user

        self._attempts: list[CredentialAttempt] = []
        self._username_queue: Iterator[str] | None = None
        self._queue_exhausted = False
        self._username: str | None = None

        self._agent_usernames: list[str] = []
        self._key_file_usernames: list[str] = []

        self._helper_result: Result[HelperCredential, HelperError] | None = None
        self._helper_attempted = False
        self._helper_offered = False
        self._helper_rejected = False
        self._default_attempted = False
        self._last_allowed = CredentialType(0)
        self._last_url: str | None = None

    # -------------------------------------------------------------------------
    # Session state
    # -------------------------------------------------------------------------

    @property
    def attempts(self) -> tuple[CredentialAttempt, ...]:
        return tuple(self._attempts)

    @property
    def agent_usernames(self) -> tuple[str, ...]:
        """Usernames offered to the ssh agent, in order."""
        return tuple(self._agent_usernames)

    @property
    def helper_attempted(self) -> bool:
        """True once the credential helper ran, for a username or a password."""
        return self._helper_attempted

    @property
    def helper_error(self) -> HelperError | None:
        """Set when the credential helper itself failed."""
        if self._helper_attempted and isinstance(self._helper_result, Err):
            return self._helper_result.error
        return None

    @property
    def helper_rejected(self) -> bool:
        """True when the helper produced credentials the remote refused."""
        return self._helper_rejected

    def mark_accepted(self) -> None:
        """Record that the last offered credential got the fetch through."""
        if not self._attempts:
            return
        last = self._attempts[-1]
        self._attempts[-1] = dataclasses.replace(last, accepted=True)
        for i, attempt in enumerate(self._attempts[:-1]):
            if attempt.kind is CredentialKind.USERNAME and attempt.identity == last.identity:
                self._attempts[i] = dataclasses.replace(attempt, accepted=True)

    # -------------------------------------------------------------------------
    # Handshake
    # -------------------------------------------------------------------------

    def resolve(
        self,
        url: str,
        username_from_url: str | None,
        allowed: CredentialType,
    ) -> Result[Credential | None, AuthFailure]:
        """Answer one handshake round.

        Returns:
            Ok(credential) to offer, Ok(None) to let the engine use its
            default credential, Err(AuthFailure) when nothing is left.
        """
        logger.debug(
            "credential round %d for %s (user=%s, allowed=%s)",
            len(self._attempts) + 1,
            url,
            username_from_url,
            _describe_allowed(allowed),
        )
        self._last_allowed = allowed
        self._last_url = url
        if self._attempts and self._attempts[-1].kind is CredentialKind.CREDENTIAL_HELPER:
            self._helper_rejected = True

        if CredentialType.USERNAME in allowed:
            return self._offer_username(url)

        username = username_from_url or self._username or DEFAULT_SSH_USERNAME

        if CredentialType.SSH_KEY in allowed:
            if username not in self._agent_usernames:
                self._agent_usernames.append(username)
                self._record(CredentialKind.SSH_AGENT, username)
                return Ok(pygit2.KeypairFromAgent(username))
            if self._ssh_keys is not None and username not in self._key_file_usernames:
                self._key_file_usernames.append(username)
                self._record(CredentialKind.SSH_KEY_FILE, username)
                return Ok(
                    pygit2.Keypair(
                        username,
                        str(self._ssh_keys.public),
                        str(self._ssh_keys.private),
                        "",
                    )
                )

        if CredentialType.USERPASS_PLAINTEXT in allowed and not self._helper_offered:
            self._helper_offered = True
            match self._helper_fill(url):
                case Ok(cred):
                    self._record(CredentialKind.CREDENTIAL_HELPER, cred.username)
                    return Ok(pygit2.UserPass(cred.username, cred.password))
                case Err(e):
                    logger.debug("credential helper failed: %s", e.message)

        if CredentialType.DEFAULT in allowed and not self._default_attempted:
            self._default_attempted = True
            self._record(CredentialKind.DEFAULT, "")
            return Ok(None)

        return Err(AuthFailure(url=url, message=self.describe_failure(url)))

    def _offer_username(self, url: str) -> Result[Credential | None, AuthFailure]:
        candidate = self._next_username()
        if candidate is None:
            return Err(AuthFailure(url=url, message=self.describe_failure(url)))
        self._username = candidate
        self._record(CredentialKind.USERNAME, candidate)
        return Ok(pygit2.Username(candidate))

    def _next_username(self) -> str | None:
        if self._username_queue is None:
            self._username_queue = self._username_candidates()
        candidate = next(self._username_queue, None)
        if candidate is None:
            self._queue_exhausted = True
        return candidate

    def _username_candidates(self) -> Iterator[str]:
        """Yield usernames in priority order, skipping duplicates.

        Lazy so the credential helper only runs when its turn comes.
        """
        seen: set[str] = set()
        sources: list[Callable[[], str | None]] = [
            lambda: self._config_username,
            self._os_user,
            self._helper_username,
            lambda: DEFAULT_SSH_USERNAME,
        ]
        for source in sources:
            name = source()
            if name and name not in seen:
                seen.add(name)
                yield name

    def _helper_username(self) -> str | None:
        if self._helper is None or self._last_url is None:
            return None
        match self._helper_fill(self._last_url):
            case Ok(cred):
                return cred.username
            case Err(_):
                return None

    def _helper_fill(self, url: str) -> Result[HelperCredential, HelperError]:
        self._helper_attempted = True
        if self._helper_result is None:
            if self._helper is None:
                self._helper_result = Err(HelperError("no credential helper available"))
            else:
                self._helper_result = self._helper.fill(url)
        return self._helper_result

    def _record(self, kind: CredentialKind, identity: str) -> None:
        logger.debug("offering %s credential for %r", kind, identity)
        self._attempts.append(CredentialAttempt(kind=kind, identity=identity))

    # -------------------------------------------------------------------------
    # Diagnostics
    # -------------------------------------------------------------------------

    def describe_failure(self, url: str) -> str:
        """Explain which strategies were tried and how each failed."""
        parts: list[str] = []
        if self._queue_exhausted:
            parts.append("no usernames left to offer")

        if self._agent_usernames:
            parts.append(f"ssh-agent tried for: {', '.join(self._agent_usernames)}")
        else:
            parts.append("ssh-agent not tried")

        if self._key_file_usernames:
            parts.append(f"ssh key file tried for: {', '.join(self._key_file_usernames)}")

        error = self.helper_error
        if not self._helper_attempted:
            parts.append("credential helper not attempted")
        elif error is not None:
            parts.append(f"credential helper errored: {error.message}")
        elif self._helper_rejected:
            parts.append("credential helper returned credentials that were rejected")
        elif not self._helper_offered:
            parts.append("credential helper supplied a username only")

        parts.append(f"remote allowed: {_describe_allowed(self._last_allowed)}")
        return f"authentication failed for {url}: " + "; ".join(parts)


class ResolverCallbacks(pygit2.RemoteCallbacks):
    """Routes libgit2's credential callback into a CredentialResolver."""

    def __init__(self, resolver: CredentialResolver) -> None:
        super().__init__()
        self.resolver = resolver

    def credentials(
        self,
        url: str,
        username_from_url: str | None,
        allowed_types: CredentialType,
    ) -> Credential:
        match self.resolver.resolve(url, username_from_url, CredentialType(allowed_types)):
            case Ok(None):
                raise Passthrough
            case Ok(credential):
                return credential
            case Err(failure):
                raise CredentialsExhausted(failure)
