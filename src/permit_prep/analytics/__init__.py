# ABOUTME: Groups the study analytics aggregation utilities.
# ABOUTME: Re-exports the aggregator, duration formatting and report export.

from .aggregation import AnalyticsAggregator, format_study_time
from .export import export_analytics_report

__all__ = [
    "AnalyticsAggregator",
    "export_analytics_report",
    "format_study_time",
]
