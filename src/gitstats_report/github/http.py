"""GitHub HTTP transport.

Async single-request primitives for the GitHub API. Each call performs exactly
one round trip; status interpretation belongs to the caller.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Optional

import httpx
from pydantic import BaseModel

from gitstats_report import __version__
from gitstats_report.github.auth import GitHubAuth

logger = logging.getLogger(__name__)

LINK_PATTERN = re.compile(r'<([^>]+)>;\s*rel="([^"]+)"')


def parse_link_header(link_header: str | None) -> dict[str, str]:
    """Parse a Link header into a rel -> URL mapping.

    Args:
        link_header: Link header value, e.g. ``<url>; rel="next", <url>; rel="last"``.

    Returns:
        Dict mapping rel type to URL.
    """
    if not link_header:
        return {}

    links = {}
    for part in link_header.split(","):
        match = LINK_PATTERN.match(part.strip())
        if match:
            url, rel = match.groups()
            links[rel] = url
    return links


class RateLimitInfo(BaseModel):
    """GitHub API rate limit information from response headers."""

    limit: int
    remaining: int
    reset: datetime
    used: int
    resource: str = "core"

    @classmethod
    def from_headers(cls, headers: httpx.Headers) -> Optional["RateLimitInfo"]:
        """Extract rate limit info from response headers.

        Returns:
            RateLimitInfo if headers present, None otherwise.
        """
        if "x-ratelimit-limit" not in headers:
            return None

        reset_timestamp = int(headers.get("x-ratelimit-reset", "0"))
        return cls(
            limit=int(headers.get("x-ratelimit-limit", "0")),
            remaining=int(headers.get("x-ratelimit-remaining", "0")),
            reset=datetime.fromtimestamp(reset_timestamp, tz=UTC),
            used=int(headers.get("x-ratelimit-used", "0")),
            resource=headers.get("x-ratelimit-resource", "core"),
        )


@dataclass
class GitHubResponse:
    """GitHub API response with parsed body and pagination metadata."""

    status_code: int
    data: Any
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    rate_limit: RateLimitInfo | None = None
    url: str = ""

    @property
    def is_success(self) -> bool:
        """Check if response was successful (2xx status code)."""
        return 200 <= self.status_code < 300

    @property
    def next_url(self) -> str | None:
        """URL of the next page, if the response advertises one."""
        return parse_link_header(self.headers.get("link")).get("next")


@dataclass
class HTTPRateLimitState:
    """Tracks rate limit state across HTTP requests."""

    last_rate_limit: RateLimitInfo | None = None
    requests_made: int = 0
    rate_limit_hits: int = 0

    def update(self, rate_limit: RateLimitInfo | None) -> None:
        """Record one request and the rate limit it reported."""
        self.requests_made += 1
        if rate_limit:
            self.last_rate_limit = rate_limit
            if rate_limit.remaining == 0:
                self.rate_limit_hits += 1
                logger.warning(
                    "Rate limit reached. Limit: %d, Reset: %s",
                    rate_limit.limit,
                    rate_limit.reset.isoformat(),
                )


class GitHubHTTPError(Exception):
    """Base exception for GitHub HTTP errors."""


class TransportError(GitHubHTTPError):
    """A single request failed or returned a non-success status."""

    def __init__(self, message: str, status_code: int | None = None, url: str = "") -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)

    @classmethod
    def from_response(cls, response: GitHubResponse, what: str) -> "TransportError":
        """Build an error describing an unexpected response."""
        return cls(
            f"{what} failed with status {response.status_code}",
            status_code=response.status_code,
            url=response.url,
        )


class GitHubClient:
    """Async HTTP client for the GitHub API.

    Carries authentication and base URL resolution. Does not retry: a
    network failure surfaces as TransportError to the immediate caller.
    """

    BASE_URL = "https://api.github.com"
    DEFAULT_TIMEOUT = 30.0

    def __init__(
        self,
        auth: GitHubAuth | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        base_url: str = BASE_URL,
    ) -> None:
        """Initialize GitHub HTTP client.

        Args:
            auth: GitHubAuth instance. If None, creates from environment.
            timeout: Request timeout in seconds.
            base_url: Base URL for GitHub API.
        """
        self._auth = auth or GitHubAuth()
        self._timeout = timeout
        self._base_url = base_url.rstrip("/")

        self._client: httpx.AsyncClient | None = None
        self._rate_limit_state = HTTPRateLimitState()

    @property
    def rate_limit_state(self) -> HTTPRateLimitState:
        """Current rate limit tracking state."""
        return self._rate_limit_state

    def _get_headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": f"gitstats-report/{__version__}",
        }
        headers.update(self._auth.get_authorization_header())
        return headers

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                headers=self._get_headers(),
                follow_redirects=True,
            )
        return self._client

    async def request(
        self,
        method: str,
        path: str,
        **kwargs: Any,
    ) -> GitHubResponse:
        """Make one HTTP request to the GitHub API.

        Args:
            method: HTTP method (GET, POST, etc.).
            path: API path relative to the base URL, or an absolute URL
                (as found in pagination links).
            **kwargs: Additional arguments passed to httpx (params, json, headers).

        Returns:
            GitHubResponse with parsed data and metadata, whatever its status.

        Raises:
            TransportError: On timeout or network failure.
        """
        client = await self._ensure_client()
        logger.debug("%s %s", method, path)

        try:
            response = await client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise TransportError(f"Request timeout for {method} {path}: {e}", url=path) from e
        except httpx.NetworkError as e:
            raise TransportError(f"Network error for {method} {path}: {e}", url=path) from e

        rate_limit = RateLimitInfo.from_headers(response.headers)
        self._rate_limit_state.update(rate_limit)

        data = None
        if response.content:
            try:
                data = response.json()
            except ValueError as e:
                logger.warning("Failed to parse JSON response from %s: %s", path, e)
                data = response.text

        return GitHubResponse(
            status_code=response.status_code,
            data=data,
            headers=response.headers,
            rate_limit=rate_limit,
            url=str(response.url),
        )

    async def get(self, path: str, **kwargs: Any) -> GitHubResponse:
        """Make a GET request."""
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> GitHubResponse:
        """Make a POST request."""
        return await self.request("POST", path, **kwargs)

    async def close(self) -> None:
        """Close the HTTP client and cleanup resources."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "GitHubClient":
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
