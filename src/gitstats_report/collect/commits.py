"""Commit history per author."""

import logging

from gitstats_report.collect.paging import PagedFetcher, PageRequest
from gitstats_report.metrics.comparative import group_by_author
from gitstats_report.models import AuthorCommits, Commit, Period, RepoCommits, to_iso

logger = logging.getLogger(__name__)


async def fetch_commits(
    fetcher: PagedFetcher,
    owner: str,
    repo: str,
    period: Period,
    per_page: int = 100,
) -> list[Commit]:
    """Fetch default-branch commits since the start of the period.

    Commits not linked to a GitHub account are dropped.
    """
    request = PageRequest(
        f"/repos/{owner}/{repo}/commits",
        {"since": to_iso(period.previous), "per_page": per_page},
    )
    raw = await fetcher.fetch_all(request)

    commits = [commit for commit in (Commit.from_api(item) for item in raw) if commit is not None]
    if len(commits) < len(raw):
        logger.debug(
            "Dropped %d unattributed commits from %s/%s", len(raw) - len(commits), owner, repo
        )
    return commits


def group_commits(commits: list[Commit]) -> list[AuthorCommits]:
    """Group commits by author login, keeping each author's commits in listing order."""
    return [
        AuthorCommits(author=author, commits=authored)
        for author, authored in group_by_author(commits, "login").items()
    ]


async def fetch_repo_commits(
    fetcher: PagedFetcher,
    owner: str,
    repo: str,
    period: Period,
    per_page: int = 100,
) -> RepoCommits:
    """Fetch and group one repository's commit history."""
    commits = await fetch_commits(fetcher, owner, repo, period, per_page)
    return RepoCommits(repo=repo, authors=group_commits(commits))
