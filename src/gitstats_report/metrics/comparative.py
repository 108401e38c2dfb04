"""Window-over-window metrics.

Pure functions that split timestamped events between the previous and next
window of a Period. Events may be models (attribute access) or mappings.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

from gitstats_report.models import ComparativeCount, ComparativeDurations, Period, parse_timestamp

logger = logging.getLogger(__name__)


def event_time(event: Any, field_name: str) -> datetime | None:
    """Read ``field_name`` from an event as a UTC datetime, or None if absent."""
    if isinstance(event, Mapping):
        value = event.get(field_name)
    else:
        value = getattr(event, field_name, None)
    return parse_timestamp(value)


def comparative_counts(
    events: Iterable[Any],
    field_name: str,
    period: Period,
) -> ComparativeCount:
    """Count events per window by their ``field_name`` timestamp.

    Events outside both windows, or without the field, are ignored.
    """
    counts = ComparativeCount()
    for event in events:
        window = period.window_of(event_time(event, field_name))
        if window == "previous":
            counts.previous += 1
        elif window == "next":
            counts.next += 1
    return counts


def comparative_durations(
    events: Iterable[Any],
    end_field: str,
    start_field: str,
    period: Period,
) -> ComparativeDurations:
    """Collect ``end - start`` durations in seconds, bucketed by the end time.

    Events with no end time (e.g. pull requests never merged) are excluded.
    Negative durations are reported and skipped.
    """
    durations = ComparativeDurations()
    for event in events:
        end = event_time(event, end_field)
        window = period.window_of(end)
        if end is None or window is None:
            continue

        start = event_time(event, start_field)
        if start is None:
            logger.warning("Event ending %s has no %s, skipping", end.isoformat(), start_field)
            continue

        seconds = (end - start).total_seconds()
        if seconds < 0:
            logger.warning(
                "Negative duration (%s=%s before %s=%s), skipping",
                end_field,
                end.isoformat(),
                start_field,
                start.isoformat(),
            )
            continue

        getattr(durations, window).append(seconds)
    return durations


def group_by_author(items: Iterable[Any], author_field: str = "author") -> dict[str, list[Any]]:
    """Group items by author, keys sorted, items kept in input order."""
    groups: dict[str, list[Any]] = {}
    for item in items:
        author = item.get(author_field) if isinstance(item, Mapping) else getattr(item, author_field)
        groups.setdefault(author, []).append(item)
    return {author: groups[author] for author in sorted(groups)}
