"""Comparative metrics and contributor statistics shaping."""

from gitstats_report.metrics.comparative import (
    comparative_counts,
    comparative_durations,
    group_by_author,
)
from gitstats_report.metrics.contributors import (
    summarize_weekly_commits,
    to_weekly_series,
    to_window_stats,
)

__all__ = [
    "comparative_counts",
    "comparative_durations",
    "group_by_author",
    "summarize_weekly_commits",
    "to_weekly_series",
    "to_window_stats",
]
