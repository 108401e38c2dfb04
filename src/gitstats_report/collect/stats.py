"""Contributor statistics probe.

GitHub computes contributor statistics in the background: 202 means the job
is still running, 204 means there is nothing to report, 200 carries the
weekly buckets.
"""

import logging
from typing import Any, get_args

from gitstats_report.collect.paging import SupportsGet
from gitstats_report.github.http import TransportError
from gitstats_report.metrics.contributors import parse_contributors, to_weekly_series, to_window_stats
from gitstats_report.models import Pending, Period, Ready, StatsResult, StatsShape

logger = logging.getLogger(__name__)

STATUS_READY = 200
STATUS_PENDING = 202
STATUS_EMPTY = 204

STATS_SHAPES: tuple[StatsShape, ...] = get_args(StatsShape)


class UnexpectedStatusError(TransportError):
    """The statistics endpoint answered with a status outside the known three."""


async def probe_contributor_stats(
    http_client: SupportsGet,
    owner: str,
    repo: str,
    period: Period,
    shape: StatsShape = "window",
    weeks: int = 5,
) -> StatsResult:
    """Request contributor statistics once.

    Args:
        http_client: Client issuing the request.
        owner: Repository owner.
        repo: Repository name.
        period: Comparison period.
        shape: ``window`` for per-window totals, ``weekly`` for a weekly series.
        weeks: Series length when ``shape`` is ``weekly``.

    Returns:
        Pending while GitHub is computing, otherwise Ready.

    Raises:
        ValueError: If ``shape`` is not a known shape.
        UnexpectedStatusError: For any other status.
    """
    if shape not in STATS_SHAPES:
        msg = f"Unknown statistics shape {shape!r}, expected one of {', '.join(STATS_SHAPES)}"
        raise ValueError(msg)

    response = await http_client.get(f"/repos/{owner}/{repo}/stats/contributors")

    if response.status_code == STATUS_PENDING:
        logger.debug("Contributor stats for %s/%s pending", owner, repo)
        return Pending()

    if response.status_code == STATUS_EMPTY:
        return Ready()

    if response.status_code != STATUS_READY:
        raise UnexpectedStatusError.from_response(response, f"Contributor stats for {owner}/{repo}")

    body: Any = response.data or []
    if not isinstance(body, list):
        raise UnexpectedStatusError(
            f"Contributor stats for {owner}/{repo} returned {type(body).__name__}, expected list",
            status_code=response.status_code,
            url=response.url,
        )

    contributors = parse_contributors(body)
    if shape == "weekly":
        return Ready(authors=to_weekly_series(contributors, period, weeks))
    return Ready(authors=to_window_stats(contributors, period))
