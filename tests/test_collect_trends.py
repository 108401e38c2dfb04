"""Tests for issue and stargazer trends."""

import logging

import pytest
from conftest import FakeGitHub, make_response

from gitstats_report.collect.paging import PagedFetcher
from gitstats_report.collect import trends
from gitstats_report.collect.trends import STAR_MEDIA_TYPE, fetch_issue_trend, fetch_star_trend
from gitstats_report.models import Period


class TestIssueTrend:
    """Tests for issue creation counts."""

    @pytest.mark.asyncio
    async def test_pull_requests_excluded(self, fake_github: FakeGitHub, period: Period) -> None:
        """Test that entries carrying a pull_request key are not counted."""
        fake_github.add(
            "/repos/acme/api/issues",
            make_response(
                200,
                [
                    {"number": 1, "created_at": "2024-06-03T00:00:00Z"},
                    {"number": 2, "created_at": "2024-06-10T00:00:00Z"},
                    {"number": 3, "created_at": "2024-06-10T00:00:00Z", "pull_request": {"url": "x"}},
                    {"number": 4, "created_at": "2024-01-01T00:00:00Z"},
                ],
            ),
        )

        counts = await fetch_issue_trend(PagedFetcher(fake_github), "acme", "api", period)

        assert (counts.previous, counts.next) == (1, 1)


class TestStarTrend:
    """Tests for stargazer counts."""

    @pytest.mark.asyncio
    async def test_requests_timestamped_media_type(self, fake_github: FakeGitHub, period: Period) -> None:
        """Test that stargazers are listed with their star times."""
        fake_github.add(
            "/repos/acme/api/stargazers",
            make_response(
                200,
                [
                    {"starred_at": "2023-01-01T00:00:00Z", "user": {"login": "old"}},
                    {"starred_at": "2024-06-05T00:00:00Z", "user": {"login": "amy"}},
                    {"starred_at": "2024-06-11T00:00:00Z", "user": {"login": "bob"}},
                    {"starred_at": "2024-06-12T00:00:00Z", "user": None},
                ],
            ),
        )

        counts = await fetch_star_trend(PagedFetcher(fake_github), "acme", "api", period)

        assert (counts.previous, counts.next) == (1, 2)
        _, _, headers = fake_github.calls[0]
        assert headers == {"Accept": STAR_MEDIA_TYPE}

    @pytest.mark.asyncio
    async def test_listing_cap_warns(
        self,
        fake_github: FakeGitHub,
        period: Period,
        monkeypatch: pytest.MonkeyPatch,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test that a listing filling every allowed page is reported as truncated."""
        monkeypatch.setattr(trends, "STARGAZER_PAGE_CAP", 2)
        second = "https://api.github.com/repos/acme/api/stargazers?page=2"
        fake_github.add(
            "/repos/acme/api/stargazers",
            make_response(200, [{"starred_at": "2024-06-05T00:00:00Z"}], next_url=second),
        )
        fake_github.add(second, make_response(200, [{"starred_at": "2024-06-11T00:00:00Z"}]))
        caplog.set_level(logging.WARNING, logger="gitstats_report.collect.trends")

        counts = await fetch_star_trend(PagedFetcher(fake_github), "acme", "api", period, per_page=1)

        assert (counts.previous, counts.next) == (1, 1)
        assert "listing cap" in caplog.text

    @pytest.mark.asyncio
    async def test_short_listing_does_not_warn(
        self, fake_github: FakeGitHub, period: Period, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test that an ordinary listing logs no truncation warning."""
        fake_github.add("/repos/acme/api/stargazers", make_response(200, [{"starred_at": "2024-06-05T00:00:00Z"}]))
        caplog.set_level(logging.WARNING, logger="gitstats_report.collect.trends")

        await fetch_star_trend(PagedFetcher(fake_github), "acme", "api", period, per_page=1)

        assert "listing cap" not in caplog.text
