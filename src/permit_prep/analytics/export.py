# ABOUTME: Exports analytics series to parquet and a JSON summary for dashboards.
# ABOUTME: Flattens durations to seconds so downstream readers need no timedelta support.

import json
from dataclasses import asdict
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pandas as pd

from ..common.categories import Category
from .aggregation import DEFAULT_DAYS, DEFAULT_WEEKS, AnalyticsAggregator, format_study_time


DAILY_COLUMNS = ["day_start", "questions_answered", "correct_answers", "accuracy", "total_time_spent_seconds"]
WEEKLY_COLUMNS = [
    "week_start",
    "questions_answered",
    "correct_answers",
    "accuracy",
    "days_studied",
    "time_spent_seconds",
]
TREND_COLUMNS = ["category", "day_start", "accuracy", "attempts"]


def _frame(rows: Iterable[object], columns: List[str], duration_field: Optional[str] = None) -> pd.DataFrame:
    records: List[Dict] = []
    for row in rows:
        record = asdict(row)
        if "category" in record and isinstance(record["category"], Category):
            record["category"] = record["category"].value
        if duration_field is not None:
            record[f"{duration_field}_seconds"] = int(record.pop(duration_field).total_seconds())
        records.append(record)
    return pd.DataFrame(records, columns=columns)


def export_analytics_report(
    aggregator: AnalyticsAggregator,
    output_dir: Path,
    days: int = DEFAULT_DAYS,
    weeks: int = DEFAULT_WEEKS,
    categories: Optional[Iterable[Category]] = None,
) -> Dict[str, Path]:
    """
    Write daily, weekly and per-category trend tables plus a summary.json.

    Returns the written paths keyed by artifact name.
    """

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    daily = aggregator.daily_stats(days)
    weekly = aggregator.weekly_stats(weeks)
    trend_points = []
    for category in categories or list(Category):
        trend_points.extend(aggregator.category_trend(category, days))

    paths = {
        "daily_stats": output_dir / "daily_stats.parquet",
        "weekly_stats": output_dir / "weekly_stats.parquet",
        "category_trends": output_dir / "category_trends.parquet",
        "summary": output_dir / "summary.json",
    }
    _frame(daily, DAILY_COLUMNS, "total_time_spent").to_parquet(paths["daily_stats"], index=False)
    _frame(weekly, WEEKLY_COLUMNS, "time_spent").to_parquet(paths["weekly_stats"], index=False)
    _frame(trend_points, TREND_COLUMNS).to_parquet(paths["category_trends"], index=False)

    total_time = aggregator.total_study_time()
    summary = {
        "window_days": days,
        "window_weeks": weeks,
        "questions_in_window": sum(stat.questions_answered for stat in daily),
        "days_studied_in_window": sum(1 for stat in daily if stat.questions_answered > 0),
        "average_accuracy": aggregator.average_accuracy(),
        "total_study_time_seconds": int(total_time.total_seconds()),
        "total_study_time": format_study_time(total_time),
    }
    paths["summary"].write_text(json.dumps(summary, indent=2), encoding="utf-8")
    return paths
