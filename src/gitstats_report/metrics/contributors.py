"""Contributor statistics shaping.

GitHub reports contributor activity as weekly buckets per author. These
helpers reduce the buckets to the two period windows, or to a short weekly
series for charts, and total a report's weekly commits.
"""

from collections import defaultdict
from collections.abc import Iterable
from datetime import datetime, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from gitstats_report.models import (
    ComparativeCount,
    ContributorSeries,
    ContributorStat,
    Period,
    Ready,
    Repository,
    WeekPoint,
    WeeklyCommitSummary,
)


class WeekBucket(BaseModel):
    """One raw weekly bucket (``w``, ``a``, ``d``, ``c``)."""

    model_config = ConfigDict(populate_by_name=True)

    week: datetime = Field(alias="w")
    additions: int = Field(default=0, alias="a")
    deletions: int = Field(default=0, alias="d")
    commits: int = Field(default=0, alias="c")


class ContributorWeeks(BaseModel):
    """Weekly buckets of one resolved author."""

    login: str
    weeks: list[WeekBucket] = Field(default_factory=list)

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> "ContributorWeeks | None":
        """Validate one contributor entry; None if the author is unresolved."""
        author = raw.get("author") or {}
        if not author.get("login"):
            return None
        return cls(login=author["login"], weeks=raw.get("weeks") or [])


def parse_contributors(body: Iterable[dict[str, Any]]) -> list[ContributorWeeks]:
    """Validate a contributor statistics payload, skipping unresolved authors."""
    parsed = (ContributorWeeks.from_api(raw) for raw in body)
    return [contributor for contributor in parsed if contributor is not None]


def to_window_stats(contributors: Iterable[ContributorWeeks], period: Period) -> list[ContributorStat]:
    """Sum each author's buckets per window.

    Authors without commits in either window are dropped.
    """
    stats = []
    for contributor in contributors:
        commits = ComparativeCount()
        added = ComparativeCount()
        deleted = ComparativeCount()
        for bucket in contributor.weeks:
            window = period.window_of(bucket.week)
            if window is None:
                continue
            setattr(commits, window, getattr(commits, window) + bucket.commits)
            setattr(added, window, getattr(added, window) + bucket.additions)
            setattr(deleted, window, getattr(deleted, window) + bucket.deletions)

        if commits.previous or commits.next:
            stats.append(
                ContributorStat(
                    login=contributor.login,
                    commits=commits,
                    lines_added=added,
                    lines_deleted=deleted,
                )
            )
    return stats


def series_weeks(period: Period, weeks: int) -> list[datetime]:
    """Week starts of a ``weeks``-long series ending at ``period.next``, oldest first."""
    return [period.next - timedelta(weeks=offset) for offset in reversed(range(weeks))]


def _points(by_week: dict[datetime, WeekBucket], starts: list[datetime], attr: str) -> list[WeekPoint]:
    return [
        WeekPoint(week=start, value=getattr(by_week[start], attr) if start in by_week else 0)
        for start in starts
    ]


def to_weekly_series(
    contributors: Iterable[ContributorWeeks],
    period: Period,
    weeks: int = 5,
) -> list[ContributorSeries]:
    """Build a fixed-length weekly series per author.

    Weeks missing from the payload count as zero. Authors without commits in
    any of the series weeks are dropped.
    """
    starts = series_weeks(period, weeks)
    series = []
    for contributor in contributors:
        by_week = {bucket.week: bucket for bucket in contributor.weeks}
        commits = _points(by_week, starts, "commits")
        if not any(point.value for point in commits):
            continue
        series.append(
            ContributorSeries(
                login=contributor.login,
                commits=commits,
                lines_added=_points(by_week, starts, "additions"),
                lines_deleted=_points(by_week, starts, "deletions"),
            )
        )
    return series


def describe_change(change: float | None, previous: int, latest: int) -> str:
    """Human-readable week-over-week direction."""
    if change is None:
        return "up from zero" if latest > previous else "unchanged"
    if change >= 0:
        return f"up by {round(change * 100)}%"
    return f"down by {round(-change * 100)}%"


def summarize_weekly_commits(repos: Iterable[Repository]) -> WeeklyCommitSummary:
    """Total weekly commits across repositories with ready weekly statistics.

    The change compares the last two weeks; it is None when the earlier
    week had no commits.
    """
    totals: dict[datetime, int] = defaultdict(int)
    for repo in repos:
        if not isinstance(repo.stats, Ready):
            continue
        for author in repo.stats.authors:
            if not isinstance(author, ContributorSeries):
                continue
            for point in author.commits:
                totals[point.week] += point.value

    weeks = sorted(totals)
    values = [totals[week] for week in weeks]
    if len(values) < 2:
        return WeeklyCommitSummary(weeks=weeks, totals=values)

    previous, latest = values[-2], values[-1]
    change = (latest - previous) / previous if previous else None
    return WeeklyCommitSummary(
        weeks=weeks,
        totals=values,
        change=change,
        summary_text=describe_change(change, previous, latest),
    )
