"""Shared fixtures for gitstats-report tests.

Provides a fixed one-week period and a scripted stand-in for GitHubClient
so collectors and the assembler can be exercised without network access.
"""

from collections import defaultdict
from datetime import date
from typing import Any

import httpx
import pytest

from gitstats_report.github.http import GitHubResponse
from gitstats_report.models import Period

API = "https://api.github.com"


def make_response(
    status_code: int = 200,
    data: Any = None,
    next_url: str | None = None,
    url: str = "",
) -> GitHubResponse:
    """Build a GitHubResponse, optionally advertising a next page."""
    headers = httpx.Headers({"link": f'<{next_url}>; rel="next"'} if next_url else {})
    return GitHubResponse(status_code=status_code, data=data, headers=headers, url=url)


class FakeGitHub:
    """Scripted GET client.

    Responses are queued per path (or absolute next-page URL) and served in
    order; the last queued response repeats once the queue is drained.
    """

    def __init__(self) -> None:
        self.routes: dict[str, list[Any]] = defaultdict(list)
        self.calls: list[tuple[str, dict[str, Any] | None, dict[str, str] | None]] = []

    def add(self, path: str, *responses: Any) -> "FakeGitHub":
        """Queue responses (GitHubResponse or Exception) for ``path``."""
        self.routes[path].extend(responses)
        return self

    def calls_to(self, path: str) -> int:
        """Number of requests made to ``path``."""
        return sum(1 for call_path, _, _ in self.calls if call_path == path)

    async def get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> GitHubResponse:
        self.calls.append((path, params, headers))
        queue = self.routes.get(path)
        if not queue:
            return make_response(404, {"message": "Not Found"}, url=path)
        result = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def period() -> Period:
    """Week of 2024-06-02 compared with the week of 2024-06-09."""
    return Period.for_week(date(2024, 6, 9))


@pytest.fixture
def fake_github() -> FakeGitHub:
    """Empty scripted client."""
    return FakeGitHub()
