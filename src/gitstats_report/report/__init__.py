"""Report assembly."""

from gitstats_report.report.assembler import (
    AggregationInconsistencyError,
    ReportAssembler,
    merge_results,
)

__all__ = ["AggregationInconsistencyError", "ReportAssembler", "merge_results"]
