"""Pull request throughput per author."""

import logging

from gitstats_report.collect.paging import PagedFetcher, PageRequest
from gitstats_report.metrics.comparative import (
    comparative_counts,
    comparative_durations,
    group_by_author,
)
from gitstats_report.models import Period, PullRequest, PullRequestSummary

logger = logging.getLogger(__name__)


async def fetch_pull_requests(
    fetcher: PagedFetcher,
    owner: str,
    repo: str,
    period: Period,
    per_page: int = 50,
) -> list[PullRequest]:
    """Fetch pull requests updated since the start of the period.

    The listing is sorted by update time, newest first, so pagination stops
    at the first page reaching ``period.previous``. Pull requests whose
    author cannot be resolved are dropped.
    """
    request = PageRequest(
        f"/repos/{owner}/{repo}/pulls",
        {"state": "all", "sort": "updated", "direction": "desc", "per_page": per_page},
    )
    raw = await fetcher.fetch_descending(request, "updated_at", period.previous)

    pulls = []
    for item in raw:
        pull = PullRequest.from_api(item)
        if pull is None:
            logger.debug("Skipping %s/%s#%s with unknown author", owner, repo, item.get("number"))
            continue
        pulls.append(pull)
    return pulls


def summarize_pull_requests(pulls: list[PullRequest], period: Period) -> list[PullRequestSummary]:
    """Build one summary per author, ordered by author login."""
    return [
        PullRequestSummary(
            author=author,
            prs_opened=comparative_counts(authored, "created_at", period),
            prs_merged=comparative_counts(authored, "merged_at", period),
            time_to_merge=comparative_durations(authored, "merged_at", "created_at", period),
        )
        for author, authored in group_by_author(pulls).items()
    ]


async def fetch_pull_summaries(
    fetcher: PagedFetcher,
    owner: str,
    repo: str,
    period: Period,
    per_page: int = 50,
) -> list[PullRequestSummary]:
    """Fetch a repository's pull requests and summarize them per author."""
    pulls = await fetch_pull_requests(fetcher, owner, repo, period, per_page)
    logger.debug("Summarizing %d pull requests for %s/%s", len(pulls), owner, repo)
    return summarize_pull_requests(pulls, period)
