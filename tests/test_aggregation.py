# ABOUTME: Tests daily, weekly and per-category bucketing of attempts.
# ABOUTME: Uses a fixed clock so calendar windows are deterministic.

from datetime import datetime, timedelta, timezone

import pytest

from permit_prep.analytics.aggregation import AnalyticsAggregator, format_study_time
from permit_prep.common.attempt_store import AttemptStoreError, MemoryAttemptStore
from permit_prep.common.categories import Category
from permit_prep.common.schemas import AttemptRecord

# Thursday
NOW = datetime(2024, 3, 14, 15, 30, tzinfo=timezone.utc)


def _attempt(days_ago=0, hour=12, category=Category.TRAFFIC_SIGNS, correct=True, seconds=30, qid="q1"):
    timestamp = datetime(2024, 3, 14, hour, tzinfo=timezone.utc) - timedelta(days=days_ago)
    return AttemptRecord(
        question_id=qid,
        timestamp=timestamp,
        category=category,
        was_correct=correct,
        time_taken_seconds=seconds,
    )


def _aggregator(records, tz="UTC"):
    return AnalyticsAggregator(MemoryAttemptStore(records), timezone=tz, clock=lambda: NOW)


class BrokenStore(MemoryAttemptStore):
    def query(self, start=None, end=None, category=None):
        raise AttemptStoreError("disk unavailable")


def test_daily_stats_is_dense_and_oldest_first():
    stats = _aggregator([_attempt(days_ago=2)]).daily_stats(7)

    assert len(stats) == 7
    assert stats[0].day_start == datetime(2024, 3, 8, tzinfo=timezone.utc)
    assert stats[-1].day_start == datetime(2024, 3, 14, tzinfo=timezone.utc)
    for earlier, later in zip(stats, stats[1:]):
        assert later.day_start - earlier.day_start == timedelta(days=1)

    empty_days = [s for s in stats if s.questions_answered == 0]
    assert len(empty_days) == 6
    assert all(s.accuracy == 0.0 for s in empty_days)
    assert all(s.total_time_spent == timedelta(0) for s in empty_days)


def test_daily_stats_counts_every_attempt_in_window_once():
    records = [
        _attempt(days_ago=0, correct=True, seconds=10),
        _attempt(days_ago=0, hour=1, correct=False, seconds=20),
        _attempt(days_ago=1, correct=True),
        _attempt(days_ago=6, correct=False),
        _attempt(days_ago=7),
        _attempt(days_ago=10),
    ]
    stats = _aggregator(records).daily_stats(7)

    assert sum(s.questions_answered for s in stats) == 4
    today = stats[-1]
    assert today.questions_answered == 2
    assert today.correct_answers == 1
    assert today.accuracy == pytest.approx(0.5)
    assert today.total_time_spent == timedelta(seconds=30)
    assert stats[0].questions_answered == 1
    assert stats[0].accuracy == 0.0


def test_daily_stats_zero_window_is_empty():
    assert _aggregator([_attempt()]).daily_stats(0) == []


def test_daily_stats_uses_local_calendar_days():
    # 03:00 UTC on the 14th is the evening of the 13th in Los Angeles.
    record = AttemptRecord("q1", datetime(2024, 3, 14, 3, tzinfo=timezone.utc), Category.PARKING, True, 5)
    stats = _aggregator([record], tz="America/Los_Angeles").daily_stats(2)

    assert [s.day_start.date().isoformat() for s in stats] == ["2024-03-13", "2024-03-14"]
    assert [s.questions_answered for s in stats] == [1, 0]


def test_accuracy_and_study_time_trends_filter_daily_stats():
    records = [
        _attempt(days_ago=1, seconds=0),
        _attempt(days_ago=3, seconds=45),
    ]
    aggregator = _aggregator(records)

    accuracy = aggregator.accuracy_trend(7)
    study_time = aggregator.study_time_trend(7)

    assert [s.day_start.day for s in accuracy] == [11, 13]
    assert [s.day_start.day for s in study_time] == [11]


def test_weekly_stats_is_sparse_and_ascending():
    records = [
        _attempt(days_ago=3, qid="a"),  # Monday of current week
        _attempt(days_ago=1, qid="b", correct=False),
        _attempt(days_ago=1, hour=14, qid="c", seconds=60),
        _attempt(days_ago=13, qid="d"),  # Friday two weeks back
        _attempt(days_ago=35, qid="e"),  # outside a four-week window
    ]
    stats = _aggregator(records).weekly_stats(4)

    assert [s.week_start for s in stats] == [
        datetime(2024, 2, 26, tzinfo=timezone.utc),
        datetime(2024, 3, 11, tzinfo=timezone.utc),
    ]
    current = stats[-1]
    assert current.questions_answered == 3
    assert current.correct_answers == 2
    assert current.accuracy == pytest.approx(2 / 3)
    assert current.days_studied == 2
    assert current.time_spent == timedelta(seconds=120)
    assert stats[0].questions_answered == 1


def test_weekly_stats_never_exceeds_seven_study_days():
    records = [
        _attempt(days_ago=day, hour=hour, qid=f"q{day}-{hour}")
        for day in range(21)
        for hour in (8, 12)
    ]
    stats = _aggregator(records).weekly_stats(12)

    assert stats
    assert all(0 < s.days_studied <= 7 for s in stats)
    assert all(s.questions_answered > 0 for s in stats)
    assert max(s.days_studied for s in stats) == 7


def test_weekly_stats_empty_store():
    assert _aggregator([]).weekly_stats(12) == []


def test_category_trend_is_sparse_and_filtered():
    records = [
        _attempt(days_ago=0, category=Category.TRAFFIC_SIGNS, correct=True),
        _attempt(days_ago=0, hour=9, category=Category.TRAFFIC_SIGNS, correct=False),
        _attempt(days_ago=1, category=Category.PARKING),
        _attempt(days_ago=2, category=Category.TRAFFIC_SIGNS, correct=True),
        _attempt(days_ago=40, category=Category.TRAFFIC_SIGNS),
    ]
    points = _aggregator(records).category_trend("Traffic Signs", days=30)

    assert [p.day_start.day for p in points] == [12, 14]
    assert all(p.category is Category.TRAFFIC_SIGNS for p in points)
    assert points[0].accuracy == 1.0
    assert points[1].attempts == 2
    assert points[1].accuracy == pytest.approx(0.5)


def test_category_trend_rejects_unknown_category():
    with pytest.raises(ValueError):
        _aggregator([]).category_trend("Trafic Signs")


def test_store_failures_degrade_to_empty_results():
    aggregator = AnalyticsAggregator(BrokenStore(), clock=lambda: NOW)

    assert aggregator.daily_stats(30) == []
    assert aggregator.weekly_stats(12) == []
    assert aggregator.category_trend(Category.PARKING) == []
    assert aggregator.total_study_time() == timedelta(0)
    assert aggregator.average_accuracy() == 0.0


def test_lifetime_totals():
    records = [
        _attempt(days_ago=0, correct=True, seconds=90),
        _attempt(days_ago=100, correct=False, seconds=3600),
    ]
    aggregator = _aggregator(records)

    assert aggregator.total_study_time() == timedelta(seconds=3690)
    assert aggregator.average_accuracy() == pytest.approx(0.5)
    assert _aggregator([]).average_accuracy() == 0.0


def test_format_study_time():
    assert format_study_time(timedelta(seconds=59)) == "0m"
    assert format_study_time(timedelta(minutes=45, seconds=59)) == "45m"
    assert format_study_time(timedelta(hours=2, minutes=5)) == "2h 5m"
