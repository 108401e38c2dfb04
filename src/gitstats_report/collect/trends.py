"""Issue and stargazer trends."""

import logging

from gitstats_report.collect.paging import PagedFetcher, PageRequest
from gitstats_report.metrics.comparative import comparative_counts
from gitstats_report.models import ComparativeCount, Issue, Period, Stargazer, to_iso

logger = logging.getLogger(__name__)

STAR_MEDIA_TYPE = "application/vnd.github.v3.star+json"

# GitHub stops serving the stargazers listing after this many pages
STARGAZER_PAGE_CAP = 400


async def fetch_issue_trend(
    fetcher: PagedFetcher,
    owner: str,
    repo: str,
    period: Period,
    per_page: int = 100,
) -> ComparativeCount:
    """Count issues created per window.

    The issues listing also returns pull requests; those are excluded.
    """
    request = PageRequest(
        f"/repos/{owner}/{repo}/issues",
        {"state": "all", "since": to_iso(period.previous), "per_page": per_page},
    )
    raw = await fetcher.fetch_all(request)
    issues = [issue for issue in (Issue.from_api(item) for item in raw) if not issue.is_pull_request]
    return comparative_counts(issues, "created_at", period)


async def fetch_star_trend(
    fetcher: PagedFetcher,
    owner: str,
    repo: str,
    period: Period,
    per_page: int = 100,
) -> ComparativeCount:
    """Count stars given per window.

    Stargazers are listed oldest first, so the whole listing is read. A
    listing that fills every page up to GitHub's cap is reported as possibly
    missing the newest stars.
    """
    request = PageRequest(
        f"/repos/{owner}/{repo}/stargazers",
        {"per_page": per_page},
        headers={"Accept": STAR_MEDIA_TYPE},
    )
    raw = await fetcher.fetch_ascending(request)
    stars = [Stargazer.from_api(item) for item in raw]
    logger.debug("Read %d stargazers for %s/%s", len(stars), owner, repo)
    if len(raw) >= STARGAZER_PAGE_CAP * per_page:
        logger.warning(
            "Stargazers of %s/%s reached the %d-page listing cap; recent stars may be missing",
            owner,
            repo,
            STARGAZER_PAGE_CAP,
        )
    return comparative_counts(stars, "starred_at", period)
