"""Typed entities for contribution reports.

Raw API payloads are validated into these models at the transport boundary;
everything downstream works on attributes, never on response dicts.
"""

import logging
from datetime import UTC, date, datetime, time, timedelta
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

Window = Literal["previous", "next"]
StatsShape = Literal["window", "weekly"]


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as a UTC-aware datetime, treating naive values as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a GitHub timestamp into a UTC datetime.

    Args:
        value: ISO 8601 string (``Z`` suffix allowed), datetime, or None.

    Returns:
        UTC datetime, or None when the value is missing or unparseable.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, str):
        try:
            return ensure_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
        except ValueError:
            logger.warning("Unparseable timestamp: %r", value)
            return None
    logger.warning("Unsupported timestamp type: %s", type(value).__name__)
    return None


def to_iso(value: datetime) -> str:
    """Format a datetime as the UTC ISO 8601 form GitHub query parameters expect."""
    return ensure_utc(value).isoformat().replace("+00:00", "Z")


def last_completed_week(now: datetime) -> date:
    """Return the Sunday starting the most recent fully completed week.

    GitHub buckets contributor statistics into weeks starting Sunday 00:00 UTC.
    """
    today = ensure_utc(now).date()
    days_since_sunday = (today.weekday() + 1) % 7
    current_week_start = today - timedelta(days=days_since_sunday)
    return current_week_start - timedelta(weeks=1)


class Period(BaseModel):
    """Pair of adjacent, equally long comparison windows.

    The previous window is ``[previous, next)`` and the next window is
    ``[next, next + span)``.
    """

    model_config = ConfigDict(frozen=True)

    previous: datetime
    next: datetime

    @field_validator("previous", "next")
    @classmethod
    def normalize_timezone(cls, v: datetime) -> datetime:
        """Store boundaries as UTC."""
        return ensure_utc(v)

    @model_validator(mode="after")
    def validate_order(self) -> "Period":
        """Require previous to precede next."""
        if self.previous >= self.next:
            msg = f"previous ({self.previous.isoformat()}) must be before next ({self.next.isoformat()})"
            raise ValueError(msg)
        return self

    @classmethod
    def for_week(cls, week_start: date | datetime) -> "Period":
        """Build a one-week period whose next window starts at ``week_start``."""
        if isinstance(week_start, datetime):
            start = ensure_utc(week_start)
        else:
            start = datetime.combine(week_start, time.min, tzinfo=UTC)
        return cls(previous=start - timedelta(weeks=1), next=start)

    @property
    def span(self) -> timedelta:
        """Length of each window."""
        return self.next - self.previous

    @property
    def end(self) -> datetime:
        """Exclusive end of the next window."""
        return self.next + self.span

    def window_of(self, moment: datetime | None) -> Window | None:
        """Return the window ``moment`` falls in, or None if outside both."""
        if moment is None:
            return None
        moment = ensure_utc(moment)
        if self.previous <= moment < self.next:
            return "previous"
        if self.next <= moment < self.end:
            return "next"
        return None


class Owner(BaseModel):
    """Profile of the account a report is built for."""

    model_config = ConfigDict(populate_by_name=True)

    login: str
    name: str | None = None
    avatar: str | None = Field(default=None, alias="avatar_url")


class Member(BaseModel):
    """Organization member."""

    model_config = ConfigDict(populate_by_name=True)

    login: str
    avatar: str | None = Field(default=None, alias="avatar_url")


class ComparativeCount(BaseModel):
    """Event counts per window."""

    previous: int = 0
    next: int = 0


class ComparativeDurations(BaseModel):
    """Duration samples in seconds per window."""

    previous: list[float] = Field(default_factory=list)
    next: list[float] = Field(default_factory=list)


class WeekPoint(BaseModel):
    """One weekly bucket of a contributor time series."""

    week: datetime
    value: int = 0


class ContributorStat(BaseModel):
    """Contributor activity split into the two period windows."""

    shape: Literal["window"] = "window"
    login: str
    commits: ComparativeCount = Field(default_factory=ComparativeCount)
    lines_added: ComparativeCount = Field(default_factory=ComparativeCount)
    lines_deleted: ComparativeCount = Field(default_factory=ComparativeCount)


class ContributorSeries(BaseModel):
    """Contributor activity as a weekly time series, oldest week first."""

    shape: Literal["weekly"] = "weekly"
    login: str
    commits: list[WeekPoint] = Field(default_factory=list)
    lines_added: list[WeekPoint] = Field(default_factory=list)
    lines_deleted: list[WeekPoint] = Field(default_factory=list)


AuthorStats = Annotated[ContributorStat | ContributorSeries, Field(discriminator="shape")]


class Pending(BaseModel):
    """Statistics are still being computed server-side."""

    status: Literal["pending"] = "pending"


class Ready(BaseModel):
    """Statistics are available."""

    status: Literal["ready"] = "ready"
    authors: list[AuthorStats] = Field(default_factory=list)


StatsResult = Annotated[Pending | Ready, Field(discriminator="status")]


class PullRequestSummary(BaseModel):
    """Per-author pull request throughput for one repository."""

    author: str
    prs_opened: ComparativeCount
    prs_merged: ComparativeCount
    time_to_merge: ComparativeDurations


class RepositoryFailure(BaseModel):
    """A per-repository fan-out call that failed and was isolated."""

    repo: str
    phase: str
    message: str


class Repository(BaseModel):
    """Repository listing entry with assembler-attached results."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    description: str | None = None
    is_private: bool = Field(default=False, alias="private")
    is_fork: bool = Field(default=False, alias="fork")
    star_count: int = Field(default=0, alias="stargazers_count")
    updated_at: datetime
    stats: StatsResult | None = None
    prs: list[PullRequestSummary] | None = None


class Report(BaseModel):
    """Complete contribution report."""

    period: Period
    owner: Owner
    members: list[Member] = Field(default_factory=list)
    repos: list[Repository] = Field(default_factory=list)
    errors: list[RepositoryFailure] = Field(default_factory=list)

    @property
    def pending_repos(self) -> list[str]:
        """Names of repositories whose statistics are still pending."""
        return [repo.name for repo in self.repos if isinstance(repo.stats, Pending)]


class PullRequest(BaseModel):
    """Pull request from the REST listing."""

    number: int
    author: str
    title: str = ""
    state: str = "open"
    created_at: datetime
    updated_at: datetime
    merged_at: datetime | None = None
    closed_at: datetime | None = None

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> "PullRequest | None":
        """Validate a REST pull request, or None if its author is unknown."""
        user = raw.get("user") or {}
        if not user.get("login"):
            return None
        return cls.model_validate({**raw, "author": user["login"]})


class Commit(BaseModel):
    """Commit attributed to a platform account."""

    login: str
    date: datetime
    message: str = ""
    sha: str

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> "Commit | None":
        """Validate a REST commit, or None if its author is not a known account."""
        author = raw.get("author") or {}
        if not author.get("login"):
            return None
        commit = raw.get("commit") or {}
        return cls(
            login=author["login"],
            date=(commit.get("author") or {}).get("date"),
            message=commit.get("message") or "",
            sha=raw["sha"],
        )


class AuthorCommits(BaseModel):
    """Commits by one author, in listing order."""

    author: str
    commits: list[Commit] = Field(default_factory=list)


class RepoCommits(BaseModel):
    """Per-author commit history of one repository."""

    repo: str
    authors: list[AuthorCommits] = Field(default_factory=list)
    error: str | None = None


class Issue(BaseModel):
    """Issue (or pull request) from the issues listing."""

    number: int
    created_at: datetime
    is_pull_request: bool = False

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> "Issue":
        """Validate a REST issue."""
        return cls.model_validate({**raw, "is_pull_request": "pull_request" in raw})


class Stargazer(BaseModel):
    """Star event from the timestamped stargazers listing."""

    login: str | None = None
    starred_at: datetime

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> "Stargazer":
        """Validate a star+json stargazer record."""
        return cls(login=(raw.get("user") or {}).get("login"), starred_at=raw["starred_at"])


class RepositoryTrends(BaseModel):
    """Issue and star trends of one repository."""

    repo: str
    issues_created: ComparativeCount
    stars: ComparativeCount


class CommentActivity(BaseModel):
    """Pull request comment in the activity feed."""

    author: str
    date: datetime


class CommitActivity(BaseModel):
    """Pull request commit in the activity feed."""

    author: str
    date: datetime
    message: str = ""


class PullActivity(BaseModel):
    """Pull request with its flattened comments and commits."""

    author: str
    title: str
    number: int
    created_at: datetime
    merged_at: datetime | None = None
    closed_at: datetime | None = None
    updated_at: datetime
    state: str
    url: str
    comments: list[CommentActivity] = Field(default_factory=list)
    commits: list[CommitActivity] = Field(default_factory=list)


class RepoPullActivity(BaseModel):
    """Recently updated pull requests of one repository."""

    repo: str
    pulls: list[PullActivity] = Field(default_factory=list)


class WeeklyCommitSummary(BaseModel):
    """Commit totals per week across a report's repositories."""

    weeks: list[datetime] = Field(default_factory=list)
    totals: list[int] = Field(default_factory=list)
    change: float | None = None
    summary_text: str = ""
