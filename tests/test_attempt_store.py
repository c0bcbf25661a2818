# ABOUTME: Tests the in-memory and parquet attempt stores and the performance tracker.
# ABOUTME: Ensures range queries are half-open, sorted, and failures surface as AttemptStoreError.

import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from permit_prep.common.attempt_store import AttemptStoreError, MemoryAttemptStore, ParquetAttemptStore
from permit_prep.common.categories import Category
from permit_prep.common.performance import PerformanceTracker
from permit_prep.common.schemas import AttemptRecord

BASE = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


def _record(minutes, category=Category.RIGHT_OF_WAY, correct=True, qid="q1", seconds=12):
    return AttemptRecord(qid, BASE + timedelta(minutes=minutes), category, correct, seconds)


def test_attempt_record_validates_inputs():
    record = AttemptRecord("q1", datetime(2024, 5, 1, 9), "parking", True, 3)
    assert record.category is Category.PARKING
    assert record.timestamp.tzinfo is not None

    with pytest.raises(ValueError):
        AttemptRecord("q1", BASE, "Parkng", True, 3)
    with pytest.raises(ValueError):
        AttemptRecord("q1", BASE, Category.PARKING, True, -1)


def test_memory_store_query_is_sorted_and_half_open():
    store = MemoryAttemptStore([_record(30), _record(0), _record(10, category=Category.PARKING)])

    everything = store.query()
    assert list(everything["timestamp"]) == sorted(everything["timestamp"])

    window = store.query(start=BASE, end=BASE + timedelta(minutes=30))
    assert len(window) == 2

    parking = store.query(category="Parking")
    assert list(parking["category"]) == ["Parking"]


def test_memory_store_empty_query_has_columns():
    df = MemoryAttemptStore().query(start=BASE, end=BASE + timedelta(days=1))
    assert df.empty
    assert {"question_id", "timestamp", "category", "was_correct", "time_taken_seconds"} <= set(df.columns)


class ParquetAttemptStoreTest(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.path = Path(self.tmpdir.name) / "nested" / "attempts.parquet"

    def tearDown(self) -> None:
        self.tmpdir.cleanup()

    def test_missing_file_reads_as_empty(self):
        self.assertTrue(ParquetAttemptStore(self.path).query().empty)

    def test_append_then_query_round_trips(self):
        store = ParquetAttemptStore(self.path)
        store.append(_record(5, qid="b", correct=False, seconds=40))
        store.append(_record(0, qid="a"))

        reopened = ParquetAttemptStore(self.path)
        df = reopened.query()
        self.assertEqual(list(df["question_id"]), ["a", "b"])
        self.assertEqual(list(df["was_correct"]), [True, False])
        self.assertEqual(int(df["time_taken_seconds"].sum()), 52)
        self.assertEqual(len(reopened.query(start=BASE + timedelta(minutes=1))), 1)

    def test_corrupt_file_raises_store_error(self):
        self.path.parent.mkdir(parents=True)
        self.path.write_bytes(b"not a parquet file")
        with self.assertRaises(AttemptStoreError):
            ParquetAttemptStore(self.path).query()


def test_performance_tracker_summarizes_categories():
    clock_values = iter(BASE + timedelta(minutes=i) for i in range(100))
    tracker = PerformanceTracker(MemoryAttemptStore(), clock=lambda: next(clock_values))

    for i in range(6):
        tracker.record_attempt(f"p{i}", Category.PARKING, was_correct=i < 2)
    tracker.record_attempt("s1", Category.TRAFFIC_SIGNS, True)
    tracker.record_attempt("s1", Category.TRAFFIC_SIGNS, False)

    performance = tracker.all_category_performance()
    assert set(performance) == {"Parking", "Traffic Signs"}

    parking = performance["Parking"]
    assert parking.questions_answered == 6
    assert parking.accuracy == pytest.approx(2 / 6)
    assert parking.is_weak

    signs = tracker.category_performance("Traffic Signs")
    assert signs.questions_answered == 1
    assert signs.total_attempts == 2
    assert not signs.is_weak

    assert [p.category for p in tracker.weak_categories()] == [Category.PARKING]
    assert tracker.overall_accuracy() == pytest.approx(3 / 8)
    assert tracker.questions_seen() == 7


def test_performance_tracker_absorbs_store_errors():
    class BrokenStore(MemoryAttemptStore):
        def query(self, start=None, end=None, category=None):
            raise AttemptStoreError("unavailable")

    tracker = PerformanceTracker(BrokenStore())
    assert tracker.all_category_performance() == {}
    assert tracker.overall_accuracy() == 0.0
    assert tracker.questions_seen() == 0
