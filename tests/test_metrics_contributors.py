"""Tests for contributor statistics shaping and the weekly commit summary."""

from datetime import UTC, datetime

from gitstats_report.metrics.contributors import (
    ContributorWeeks,
    describe_change,
    parse_contributors,
    series_weeks,
    summarize_weekly_commits,
)
from gitstats_report.models import ContributorSeries, Pending, Period, Ready, Repository, WeekPoint

WEEKS = [datetime(2024, 6, 2, tzinfo=UTC), datetime(2024, 6, 9, tzinfo=UTC)]


def repo(name: str, stats) -> Repository:
    return Repository(name=name, updated_at=datetime(2024, 6, 10, tzinfo=UTC), stats=stats)


def series(login: str, values: list[int]) -> ContributorSeries:
    return ContributorSeries(
        login=login,
        commits=[WeekPoint(week=w, value=v) for w, v in zip(WEEKS, values, strict=True)],
    )


class TestParsing:
    """Tests for raw payload validation."""

    def test_from_api_requires_login(self) -> None:
        """Test that entries without an author login are rejected."""
        assert ContributorWeeks.from_api({"author": None, "weeks": []}) is None
        assert ContributorWeeks.from_api({"author": {"login": ""}, "weeks": []}) is None

    def test_bucket_aliases(self) -> None:
        """Test that short bucket keys map onto named fields."""
        (parsed,) = parse_contributors(
            [{"author": {"login": "amy"}, "weeks": [{"w": 1717286400, "a": 4, "d": 2, "c": 1}]}]
        )

        bucket = parsed.weeks[0]
        assert bucket.week == datetime(2024, 6, 2, tzinfo=UTC)
        assert (bucket.additions, bucket.deletions, bucket.commits) == (4, 2, 1)


class TestSeriesWeeks:
    """Tests for series week starts."""

    def test_oldest_first_ending_at_next(self, period: Period) -> None:
        """Test the week list of a two-week series."""
        assert series_weeks(period, 2) == WEEKS


class TestDescribeChange:
    """Tests for change wording."""

    def test_up_and_down(self) -> None:
        assert describe_change(0.5, 10, 15) == "up by 50%"
        assert describe_change(-0.25, 8, 6) == "down by 25%"
        assert describe_change(0.0, 4, 4) == "up by 0%"

    def test_from_zero(self) -> None:
        assert describe_change(None, 0, 3) == "up from zero"
        assert describe_change(None, 0, 0) == "unchanged"


class TestSummarizeWeeklyCommits:
    """Tests for the weekly commit summary."""

    def test_totals_across_repositories(self) -> None:
        """Test that series are summed per week over ready repositories."""
        repos = [
            repo("api", Ready(authors=[series("amy", [4, 2]), series("bob", [0, 1])])),
            repo("web", Ready(authors=[series("amy", [6, 3])])),
            repo("docs", Pending()),
            repo("infra", None),
        ]

        summary = summarize_weekly_commits(repos)

        assert summary.weeks == WEEKS
        assert summary.totals == [10, 6]
        assert summary.change == -0.4
        assert summary.summary_text == "down by 40%"

    def test_previous_week_without_commits(self) -> None:
        """Test that a zero previous week leaves the change undefined."""
        repos = [repo("api", Ready(authors=[series("amy", [0, 5])]))]

        summary = summarize_weekly_commits(repos)

        assert summary.change is None
        assert summary.summary_text == "up from zero"

    def test_no_series(self) -> None:
        """Test that a report without weekly statistics yields an empty summary."""
        summary = summarize_weekly_commits([repo("api", Ready())])

        assert summary.weeks == []
        assert summary.totals == []
        assert summary.change is None
        assert summary.summary_text == ""
