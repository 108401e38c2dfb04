"""GitHub authentication.

Tokens are either passed explicitly or read from an environment variable.
"""

import logging
import os

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """Raised when no usable token is available."""


class GitHubAuth:
    """Holds the token used for every request of a report run."""

    def __init__(self, token: str | None = None, token_env: str = "GITHUB_TOKEN") -> None:
        """Initialize GitHub authentication.

        Args:
            token: GitHub token. If None, read from ``token_env``.
            token_env: Environment variable consulted when no token is given.

        Raises:
            AuthenticationError: If no token is found.
        """
        if token:
            source = "explicit parameter"
        else:
            token = os.environ.get(token_env, "").strip()
            source = f"{token_env} environment variable"

        if not token:
            raise AuthenticationError(
                f"GitHub token not found. Set {token_env} or pass a token explicitly."
            )

        logger.info("Using GitHub token from %s", source)
        self._token = token

    @property
    def token(self) -> str:
        """The GitHub token."""
        return self._token

    def get_authorization_header(self) -> dict[str, str]:
        """Get the Authorization header for API requests."""
        return {"Authorization": f"token {self._token}"}
