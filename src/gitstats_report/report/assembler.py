"""Report assembly.

Coordinates the collectors into the outward operations: full reports,
fully-resolved email reports, single-repository statistics refreshes, pull
request activity, commit history and repository trends.

Per-repository calls fan out concurrently under a semaphore. Their results
are written back by index in a single pass once every call has finished,
so repository order always matches the listing and one repository's
failure never lands in another's slot.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

from gitstats_report.collect.batch import PullRequestActivityAggregator, SupportsExecute
from gitstats_report.collect.commits import fetch_repo_commits
from gitstats_report.collect.paging import PagedFetcher, SupportsGet
from gitstats_report.collect.polling import AsyncResultPoller, PollCancelled
from gitstats_report.collect.pulls import fetch_pull_summaries
from gitstats_report.collect.repos import fetch_members, fetch_owner, fetch_repositories
from gitstats_report.collect.stats import probe_contributor_stats
from gitstats_report.collect.trends import fetch_issue_trend, fetch_star_trend
from gitstats_report.config import BatchConfig, Config, FetchConfig, StatsConfig
from gitstats_report.models import (
    Period,
    PullRequestSummary,
    Ready,
    RepoCommits,
    RepoPullActivity,
    Report,
    Repository,
    RepositoryFailure,
    RepositoryTrends,
    StatsResult,
    StatsShape,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AggregationInconsistencyError(Exception):
    """Fan-out results no longer line up with the repository listing."""


def merge_results(
    repos: Sequence[Repository],
    results: Sequence[Any],
    field_name: str,
    phase: str,
    errors: list[RepositoryFailure],
) -> list[Repository]:
    """Attach per-repository results to their repositories by index.

    Exceptions become RepositoryFailure entries in ``errors`` and leave the
    repository's field unset.

    Raises:
        AggregationInconsistencyError: If the result count differs from the
            repository count.
    """
    if len(results) != len(repos):
        msg = f"{phase}: {len(results)} results for {len(repos)} repositories"
        raise AggregationInconsistencyError(msg)

    merged = []
    for repo, result in zip(repos, results, strict=True):
        if isinstance(result, Exception):
            errors.append(RepositoryFailure(repo=repo.name, phase=phase, message=str(result)))
            merged.append(repo)
        else:
            merged.append(repo.model_copy(update={field_name: result}))
    return merged


class ReportAssembler:
    """Builds contribution reports for a GitHub organization."""

    def __init__(
        self,
        http_client: SupportsGet,
        graphql_client: SupportsExecute | None = None,
        poller: AsyncResultPoller | None = None,
        fetch: FetchConfig | None = None,
        batch: BatchConfig | None = None,
        stats: StatsConfig | None = None,
    ) -> None:
        """Initialize the assembler.

        Args:
            http_client: Client for REST requests.
            graphql_client: Client for the pull request activity query.
            poller: Poller used when statistics must be fully resolved.
            fetch: Page sizes and fan-out concurrency.
            batch: Bounds of the activity query.
            stats: Statistics shapes for reports and email reports.
        """
        self._http = http_client
        self._fetcher = PagedFetcher(http_client)
        self._graphql = graphql_client
        self._poller = poller or AsyncResultPoller()
        self._fetch = fetch or FetchConfig()
        self._batch = batch or BatchConfig()
        self._stats = stats or StatsConfig()

    @classmethod
    def from_config(
        cls,
        config: Config,
        http_client: SupportsGet,
        graphql_client: SupportsExecute | None = None,
    ) -> "ReportAssembler":
        """Create an assembler with the settings of ``config``."""
        return cls(
            http_client,
            graphql_client,
            poller=AsyncResultPoller(
                interval=config.polling.interval_seconds,
                max_attempts=config.polling.max_attempts,
            ),
            fetch=config.fetch,
            batch=config.batch,
            stats=config.stats,
        )

    async def _fan_out(
        self,
        repos: Sequence[Repository],
        call: Callable[[Repository], Awaitable[T]],
        phase: str,
    ) -> list[T | Exception]:
        """Run ``call`` for every repository, returning results in listing order.

        A failing call yields its exception in that repository's position.
        Cancellation of a poll is not isolated and propagates.
        """
        semaphore = asyncio.Semaphore(self._fetch.max_concurrency)

        async def run(repo: Repository) -> T | Exception:
            async with semaphore:
                try:
                    return await call(repo)
                except PollCancelled:
                    raise
                except Exception as e:
                    logger.error("%s failed for %s: %s", phase, repo.name, e)
                    return e

        logger.info("Running %s for %d repositories", phase, len(repos))
        return list(await asyncio.gather(*(run(repo) for repo in repos)))

    async def _probe_stats(self, owner: str, repo: str, period: Period, shape: StatsShape) -> StatsResult:
        return await probe_contributor_stats(
            self._http, owner, repo, period, shape=shape, weeks=self._stats.weeks
        )

    async def _resolve_stats(
        self,
        owner: str,
        repo: str,
        period: Period,
        shape: StatsShape,
        cancel: asyncio.Event | None = None,
    ) -> Ready:
        return await self._poller.wait(
            lambda: self._probe_stats(owner, repo, period, shape),
            cancel=cancel,
            label=f"{owner}/{repo} contributor stats",
        )

    async def build_report(
        self,
        owner: str,
        period: Period,
        wait_for_stats: bool = False,
        cancel: asyncio.Event | None = None,
    ) -> Report:
        """Build the full report.

        Args:
            owner: Organization login.
            period: Comparison period.
            wait_for_stats: Poll statistics until ready. When False, each
                repository is probed once and may be left Pending; refresh
                those with get_repository_stats.
            cancel: Event that abandons statistics polling.

        Returns:
            Report with statistics and pull request summaries attached.
            Repositories whose calls failed are listed in ``errors``.
        """
        repos, members, profile = await asyncio.gather(
            fetch_repositories(self._fetcher, owner, period, self._fetch.per_page),
            fetch_members(self._fetcher, owner, self._fetch.per_page),
            fetch_owner(self._http, owner),
        )
        errors: list[RepositoryFailure] = []
        shape = self._stats.report_shape

        async def stats_for(repo: Repository) -> StatsResult:
            if wait_for_stats:
                return await self._resolve_stats(owner, repo.name, period, shape, cancel)
            return await self._probe_stats(owner, repo.name, period, shape)

        async def pulls_for(repo: Repository) -> list[PullRequestSummary]:
            return await fetch_pull_summaries(
                self._fetcher, owner, repo.name, period, self._fetch.pulls_per_page
            )

        stats = await self._fan_out(repos, stats_for, "stats")
        repos = merge_results(repos, stats, "stats", "stats", errors)

        pulls = await self._fan_out(repos, pulls_for, "pulls")
        repos = merge_results(repos, pulls, "prs", "pulls", errors)

        report = Report(period=period, owner=profile, members=members, repos=repos, errors=errors)
        logger.info(
            "Report for %s: %d repositories, %d pending, %d failures",
            owner,
            len(report.repos),
            len(report.pending_repos),
            len(errors),
        )
        return report

    async def build_email_report(
        self,
        owner: str,
        period: Period,
        cancel: asyncio.Event | None = None,
    ) -> Report:
        """Build the report sent by email.

        Statistics are polled until every repository is ready, so the
        result never contains Pending. Members and pull requests are not
        included.
        """
        repos, profile = await asyncio.gather(
            fetch_repositories(self._fetcher, owner, period, self._fetch.per_page),
            fetch_owner(self._http, owner),
        )
        errors: list[RepositoryFailure] = []
        shape = self._stats.email_shape

        async def stats_for(repo: Repository) -> Ready:
            return await self._resolve_stats(owner, repo.name, period, shape, cancel)

        stats = await self._fan_out(repos, stats_for, "stats")
        repos = merge_results(repos, stats, "stats", "stats", errors)
        return Report(period=period, owner=profile, repos=repos, errors=errors)

    async def get_repository_stats(
        self,
        owner: str,
        repo: str,
        period: Period,
        shape: StatsShape | None = None,
    ) -> StatsResult:
        """Probe one repository's statistics once; the result may be Pending."""
        if shape is None:
            shape = self._stats.report_shape
        return await self._probe_stats(owner, repo, period, shape)

    async def wait_for_repository_stats(
        self,
        owner: str,
        repo: str,
        period: Period,
        shape: StatsShape | None = None,
        cancel: asyncio.Event | None = None,
    ) -> Ready:
        """Poll one repository's statistics until ready."""
        if shape is None:
            shape = self._stats.report_shape
        return await self._resolve_stats(owner, repo, period, shape, cancel)

    async def get_pull_request_activity(self, owner: str, period: Period) -> list[RepoPullActivity]:
        """Recent pull request activity from one batch query.

        Failures are not isolated: the whole call fails together.
        """
        if self._graphql is None:
            msg = "Pull request activity needs a GraphQL client"
            raise RuntimeError(msg)
        aggregator = PullRequestActivityAggregator(self._graphql, self._batch)
        return await aggregator.fetch(owner, period)

    async def get_all_commits(self, owner: str, period: Period) -> list[RepoCommits]:
        """Per-author commit history of every public repository.

        Private repositories are skipped because the app integration is not
        granted commit access to them. A repository whose history cannot be
        fetched is returned with ``error`` set and no authors.
        """
        repos = await fetch_repositories(self._fetcher, owner, period, self._fetch.per_page)
        public = [repo for repo in repos if not repo.is_private]

        async def commits_for(repo: Repository) -> RepoCommits:
            return await fetch_repo_commits(
                self._fetcher, owner, repo.name, period, self._fetch.per_page
            )

        results = await self._fan_out(public, commits_for, "commits")
        if len(results) != len(public):
            msg = f"commits: {len(results)} results for {len(public)} repositories"
            raise AggregationInconsistencyError(msg)

        return [
            RepoCommits(repo=repo.name, error=str(result))
            if isinstance(result, Exception)
            else result
            for repo, result in zip(public, results, strict=True)
        ]

    async def get_repository_trends(self, owner: str, repo: str, period: Period) -> RepositoryTrends:
        """Issue-creation and star counts per window for one repository."""
        issues, stars = await asyncio.gather(
            fetch_issue_trend(self._fetcher, owner, repo, period, self._fetch.per_page),
            fetch_star_trend(self._fetcher, owner, repo, period, self._fetch.per_page),
        )
        return RepositoryTrends(repo=repo, issues_created=issues, stars=stars)
