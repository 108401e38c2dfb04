"""Paged REST listing fetcher.

Walks a paginated listing endpoint by following the next-page link of each
response and returns the records of every page, flattened and in order.
"""

import logging
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from gitstats_report.github.http import GitHubResponse, TransportError
from gitstats_report.models import ensure_utc, parse_timestamp

logger = logging.getLogger(__name__)


class SupportsGet(Protocol):
    """Anything that can issue a single GET request."""

    async def get(self, path: str, **kwargs: Any) -> GitHubResponse: ...


class PartialFetchError(TransportError):
    """A listing fetch failed part-way; no records are returned."""

    def __init__(self, message: str, page: int, status_code: int | None = None, url: str = "") -> None:
        self.page = page
        super().__init__(message, status_code=status_code, url=url)


@dataclass(frozen=True)
class PageRequest:
    """Describes the first page of a listing."""

    path: str
    params: dict[str, Any] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)


class PagedFetcher:
    """Fetches every page of a REST listing endpoint.

    Either every page of a listing is accepted or the whole fetch fails with
    PartialFetchError.
    """

    def __init__(self, http_client: SupportsGet) -> None:
        self._http = http_client

    async def pages(self, request: PageRequest) -> AsyncIterator[list[Any]]:
        """Yield the records of each page in order.

        Stops after a page without a next link, or at the first empty page.

        Raises:
            PartialFetchError: If any page request fails.
        """
        url: str = request.path
        params: dict[str, Any] | None = request.params or None
        page_num = 1

        while True:
            try:
                response = await self._http.get(url, params=params, headers=request.headers or None)
            except TransportError as e:
                raise PartialFetchError(
                    f"Fetching {request.path} failed on page {page_num}: {e}",
                    page=page_num,
                    url=url,
                ) from e

            if not response.is_success:
                logger.error(
                    "Listing %s failed on page %d with status %d",
                    request.path,
                    page_num,
                    response.status_code,
                )
                raise PartialFetchError(
                    f"Fetching {request.path} failed on page {page_num} "
                    f"with status {response.status_code}",
                    page=page_num,
                    status_code=response.status_code,
                    url=response.url,
                )

            records = response.data
            if records is None:
                records = []
            if not isinstance(records, list):
                raise PartialFetchError(
                    f"Expected a list from {request.path} on page {page_num}, "
                    f"got {type(records).__name__}",
                    page=page_num,
                    status_code=response.status_code,
                    url=response.url,
                )

            logger.debug("Fetched %s page %d: %d records", request.path, page_num, len(records))

            if not records:
                return

            yield records

            next_url = response.next_url
            if not next_url:
                return

            # The next link already carries the query string
            url = next_url
            params = None
            page_num += 1

    async def fetch_until(
        self,
        request: PageRequest,
        stop: Callable[[list[Any]], bool],
        accumulator: list[Any] | None = None,
    ) -> list[Any]:
        """Fetch pages until ``stop`` returns True for a page.

        The page for which ``stop`` fires is kept; no further page is requested.

        Args:
            request: First page descriptor.
            stop: Predicate called with each page's records.
            accumulator: List to extend. A new list is used if omitted.

        Returns:
            The accumulated records.
        """
        records = [] if accumulator is None else accumulator
        async for page in self.pages(request):
            records.extend(page)
            if stop(page):
                logger.debug("Stop condition met for %s, not requesting more pages", request.path)
                break
        return records

    async def fetch_all(
        self,
        request: PageRequest,
        accumulator: list[Any] | None = None,
    ) -> list[Any]:
        """Fetch every page of a listing."""
        return await self.fetch_until(request, lambda page: False, accumulator)

    async def fetch_descending(
        self,
        request: PageRequest,
        field_name: str,
        cutoff: datetime,
        accumulator: list[Any] | None = None,
    ) -> list[Any]:
        """Fetch a newest-first listing until it reaches ``cutoff``.

        Pagination stops after the first page holding a record whose
        ``field_name`` is at or before ``cutoff``.
        """
        cutoff = ensure_utc(cutoff)

        def reached_cutoff(page: list[Any]) -> bool:
            for record in page:
                moment = parse_timestamp(record.get(field_name)) if isinstance(record, dict) else None
                if moment is not None and moment <= cutoff:
                    return True
            return False

        return await self.fetch_until(request, reached_cutoff, accumulator)

    async def fetch_ascending(
        self,
        request: PageRequest,
        accumulator: list[Any] | None = None,
    ) -> list[Any]:
        """Fetch an oldest-first listing in full.

        Relevance accumulates from the start of history, so no page can be
        skipped; callers filter by period afterwards.
        """
        return await self.fetch_all(request, accumulator)
