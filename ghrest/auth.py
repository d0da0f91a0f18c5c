"""Auth Resolver - Decides which token (if any) a call is sent with.

Resolution order, first match wins:
    1. a token passed explicitly for this call
    2. a token cached on the AuthSession by an earlier sign-in
    3. the token persisted in the user's secret file
    4. none (unauthenticated calls are valid, just with a lower quota)

Resolution never raises. Session state lives on an explicit AuthSession
object so that one resolver per process can be threaded through the client.
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from ghrest.errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class AuthSession:
    """Process-scoped authentication state."""

    cached_token: str | None = None
    warned_missing_token: bool = False


class TokenStore:
    """Persists the access token in a user-scoped, owner-only file."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    def load(self) -> str | None:
        """Return the stored token, or None if absent or unreadable."""
        try:
            token = self._path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read stored access token from %s: %s", self._path, e)
            return None
        return token or None

    def save(self, token: str) -> None:
        """Write the token atomically and restrict the file to its owner."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self._path.parent, prefix=".token_tmp_")
        try:
            # Restrict before the secret is written, not after.
            os.chmod(tmp_path, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(token)
            os.replace(tmp_path, self._path)
        except BaseException:
            try:
                os.remove(tmp_path)
            except OSError:
                pass
            raise

    def clear(self) -> bool:
        """Remove the stored token. Returns True if a file was removed."""
        try:
            self._path.unlink()
        except FileNotFoundError:
            return False
        return True


class AuthResolver:
    """Resolves the token for each call and manages sign-in state."""

    def __init__(
        self,
        store: TokenStore,
        session: AuthSession | None = None,
        suppress_warning: bool = False,
    ) -> None:
        self._store = store
        self._session = session or AuthSession()
        self._suppress_warning = suppress_warning

    @property
    def session(self) -> AuthSession:
        return self._session

    def resolve(self, explicit_token: str | None = None) -> str | None:
        """Return the token to use for a call, or None."""
        if explicit_token:
            return explicit_token

        if self._session.cached_token:
            return self._session.cached_token

        stored = self._store.load()
        if stored:
            self._session.cached_token = stored
            return stored

        if not self._session.warned_missing_token:
            self._session.warned_missing_token = True
            if not self._suppress_warning:
                logger.warning(
                    "No access token configured; making unauthenticated requests, "
                    "which have a much lower rate limit. Run 'ghrest auth set' to "
                    "store a token."
                )
        return None

    def has_token(self) -> bool:
        return bool(self._session.cached_token) or self._store.exists()

    def set_token(self, token: str, session_only: bool = False) -> None:
        """Sign in: cache the token and, unless session_only, persist it."""
        token = token.strip()
        if not token:
            raise ConfigurationError("token must not be empty")
        self._session.cached_token = token
        self._session.warned_missing_token = False
        if not session_only:
            self._store.save(token)
            logger.info("Stored access token at %s", self._store.path)

    def clear_token(self, session_only: bool = False) -> None:
        """Sign out: drop the cached token and, unless session_only, the stored one."""
        self._session.cached_token = None
        if not session_only and self._store.clear():
            logger.info("Removed stored access token at %s", self._store.path)
