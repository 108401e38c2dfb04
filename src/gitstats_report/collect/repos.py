"""Organization metadata: repositories, members and owner profile."""

import logging

from gitstats_report.collect.paging import PagedFetcher, PageRequest, SupportsGet
from gitstats_report.github.http import TransportError
from gitstats_report.models import Member, Owner, Period, Repository

logger = logging.getLogger(__name__)


async def fetch_repositories(
    fetcher: PagedFetcher,
    owner: str,
    period: Period,
    per_page: int = 100,
) -> list[Repository]:
    """List the organization's repositories updated after ``period.previous``.

    Listing order is preserved.
    """
    raw = await fetcher.fetch_all(PageRequest(f"/orgs/{owner}/repos", {"per_page": per_page}))
    repos = [Repository.model_validate(item) for item in raw]
    active = [repo for repo in repos if repo.updated_at > period.previous]

    logger.info("Found %d repositories for %s (%d active in period)", len(repos), owner, len(active))
    return active


async def fetch_members(fetcher: PagedFetcher, owner: str, per_page: int = 100) -> list[Member]:
    """List the organization's members."""
    raw = await fetcher.fetch_all(PageRequest(f"/orgs/{owner}/members", {"per_page": per_page}))
    return [Member.model_validate(item) for item in raw]


async def fetch_owner(http_client: SupportsGet, owner: str) -> Owner:
    """Fetch the owner's profile.

    Raises:
        TransportError: If the profile request fails.
    """
    response = await http_client.get(f"/users/{owner}")
    if not response.is_success:
        raise TransportError.from_response(response, f"Profile of {owner}")
    return Owner.model_validate(response.data)
