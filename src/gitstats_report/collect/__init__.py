"""Collectors for GitHub listings, statistics and activity."""

from gitstats_report.collect.batch import (
    BatchQueryError,
    PullRequestActivityAggregator,
    flatten_activity,
)
from gitstats_report.collect.paging import PagedFetcher, PageRequest, PartialFetchError
from gitstats_report.collect.polling import AsyncResultPoller, PollCancelled, PollingExhausted
from gitstats_report.collect.stats import UnexpectedStatusError, probe_contributor_stats

__all__ = [
    "AsyncResultPoller",
    "BatchQueryError",
    "PageRequest",
    "PagedFetcher",
    "PartialFetchError",
    "PollCancelled",
    "PollingExhausted",
    "PullRequestActivityAggregator",
    "UnexpectedStatusError",
    "flatten_activity",
    "probe_contributor_stats",
]
