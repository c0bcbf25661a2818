# ABOUTME: Buckets attempt records into calendar days and ISO weeks for progress charts.
# ABOUTME: Also builds sparse per-category daily accuracy trends and lifetime totals.

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Union

import pandas as pd

from ..common.attempt_store import AttemptStore, AttemptStoreError
from ..common.categories import Category
from ..common.schemas import CategoryTrendPoint, DailyStats, WeeklyStats, ensure_utc

logger = logging.getLogger(__name__)

DEFAULT_DAYS = 30
DEFAULT_WEEKS = 12


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_study_time(duration: timedelta) -> str:
    """Render a duration as "2h 5m" or "45m" (floor-truncated)."""
    total_seconds = max(int(duration.total_seconds()), 0)
    hours = total_seconds // 3600
    minutes = total_seconds // 60 % 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


class AnalyticsAggregator:
    """
    Recomputes study analytics from the attempt store on every call.

    Calendar days and weeks are evaluated in ``timezone``. Note the
    asymmetry between the series:

    - ``daily_stats`` is dense: one bucket per day in the window, zero-filled.
    - ``weekly_stats`` and ``category_trend`` are sparse: periods without
      attempts are omitted.

    Store read failures are logged and produce empty results.
    """

    def __init__(
        self,
        store: AttemptStore,
        timezone: str = "UTC",
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.store = store
        self.timezone = timezone
        self.clock = clock

    # Calendar helpers

    def _today(self) -> date:
        return pd.Timestamp(ensure_utc(self.clock())).tz_convert(self.timezone).date()

    def _local_midnight(self, day: date) -> datetime:
        stamp = pd.Timestamp(day).tz_localize(self.timezone, nonexistent="shift_forward", ambiguous=False)
        return stamp.to_pydatetime()

    def _with_local_days(self, attempts: pd.DataFrame) -> pd.DataFrame:
        """Attach naive local-calendar ``day`` and ``week`` (Monday) columns as ``date`` objects."""
        df = attempts.copy()
        local = df["timestamp"].dt.tz_convert(self.timezone).dt.tz_localize(None).dt.normalize()
        week_start = local - pd.to_timedelta(local.dt.weekday, unit="D")
        df["day"] = local.dt.date
        df["week"] = week_start.dt.date
        return df

    def _fetch(
        self,
        start: date,
        end_exclusive: date,
        category: Optional[Category] = None,
        label: str = "stats",
    ) -> Optional[pd.DataFrame]:
        try:
            attempts = self.store.query(
                start=self._local_midnight(start),
                end=self._local_midnight(end_exclusive),
                category=category,
            )
        except AttemptStoreError as exc:
            logger.error("Error fetching %s: %s", label, exc)
            return None
        return self._with_local_days(attempts)

    # Daily

    def daily_stats(self, days: int = DEFAULT_DAYS) -> List[DailyStats]:
        """
        One bucket per calendar day for the ``days`` days ending today, oldest first.

        Days without attempts are emitted with zero counts and accuracy 0.0.
        """

        if days <= 0:
            return []

        today = self._today()
        window = [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]
        attempts = self._fetch(window[0], today + timedelta(days=1), label="daily stats")
        if attempts is None:
            return []

        grouped = (
            attempts.groupby("day")
            .agg(
                total=("was_correct", "size"),
                correct=("was_correct", "sum"),
                seconds=("time_taken_seconds", "sum"),
            )
            .to_dict(orient="index")
        )

        stats: List[DailyStats] = []
        for day in window:
            data = grouped.get(day)
            if data is None:
                stats.append(
                    DailyStats(
                        day_start=self._local_midnight(day),
                        questions_answered=0,
                        correct_answers=0,
                        accuracy=0.0,
                        total_time_spent=timedelta(0),
                    )
                )
                continue
            total = int(data["total"])
            correct = int(data["correct"])
            stats.append(
                DailyStats(
                    day_start=self._local_midnight(day),
                    questions_answered=total,
                    correct_answers=correct,
                    accuracy=correct / total if total > 0 else 0.0,
                    total_time_spent=timedelta(seconds=int(data["seconds"])),
                )
            )
        return stats

    def accuracy_trend(self, days: int = DEFAULT_DAYS) -> List[DailyStats]:
        return [stat for stat in self.daily_stats(days) if stat.questions_answered > 0]

    def study_time_trend(self, days: int = DEFAULT_DAYS) -> List[DailyStats]:
        return [stat for stat in self.daily_stats(days) if stat.total_time_spent > timedelta(0)]

    # Weekly

    def weekly_stats(self, weeks: int = DEFAULT_WEEKS) -> List[WeeklyStats]:
        """
        Buckets for the ``weeks`` most recent ISO weeks (Monday start), ascending.

        Weeks without attempts are omitted, unlike ``daily_stats``.
        """

        if weeks <= 0:
            return []

        today = self._today()
        current_week = today - timedelta(days=today.weekday())
        week_starts = [current_week - timedelta(weeks=offset) for offset in range(weeks - 1, -1, -1)]
        attempts = self._fetch(week_starts[0], today + timedelta(days=1), label="weekly stats")
        if attempts is None:
            return []

        grouped: Dict[date, Dict[str, float]] = (
            attempts.groupby("week")
            .agg(
                total=("was_correct", "size"),
                correct=("was_correct", "sum"),
                seconds=("time_taken_seconds", "sum"),
                days_studied=("day", "nunique"),
            )
            .to_dict(orient="index")
        )

        stats: List[WeeklyStats] = []
        for week_start in week_starts:
            data = grouped.get(week_start)
            if data is None or int(data["total"]) == 0:
                continue
            total = int(data["total"])
            correct = int(data["correct"])
            stats.append(
                WeeklyStats(
                    week_start=self._local_midnight(week_start),
                    questions_answered=total,
                    correct_answers=correct,
                    accuracy=correct / total,
                    time_spent=timedelta(seconds=int(data["seconds"])),
                    days_studied=int(data["days_studied"]),
                )
            )
        return stats

    # Category trend

    def category_trend(self, category: Union[Category, str], days: int = DEFAULT_DAYS) -> List[CategoryTrendPoint]:
        """Per-day accuracy for one category, only for days with attempts, ascending."""

        category = Category.parse(category)
        if days <= 0:
            return []

        today = self._today()
        start = today - timedelta(days=days - 1)
        attempts = self._fetch(start, today + timedelta(days=1), category=category, label="category trends")
        if attempts is None or attempts.empty:
            return []

        grouped = attempts.groupby("day").agg(
            total=("was_correct", "size"),
            correct=("was_correct", "sum"),
        )

        points = []
        for day, row in grouped.sort_index().iterrows():
            total = int(row["total"])
            points.append(
                CategoryTrendPoint(
                    category=category,
                    day_start=self._local_midnight(day),
                    accuracy=int(row["correct"]) / total if total > 0 else 0.0,
                    attempts=total,
                )
            )
        return points

    # Lifetime totals

    def total_study_time(self) -> timedelta:
        try:
            attempts = self.store.query()
        except AttemptStoreError as exc:
            logger.error("Error fetching total study time: %s", exc)
            return timedelta(0)
        return timedelta(seconds=int(attempts["time_taken_seconds"].sum()))

    def average_accuracy(self) -> float:
        try:
            attempts = self.store.query()
        except AttemptStoreError as exc:
            logger.error("Error fetching average accuracy: %s", exc)
            return 0.0
        if attempts.empty:
            return 0.0
        return float(attempts["was_correct"].mean())
