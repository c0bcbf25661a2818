# ABOUTME: Tracks lifetime per-category performance from the attempt store.
# ABOUTME: Serves as the accuracy source for recommendation-cache drift checks.

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Union

import pandas as pd

from .attempt_store import AttemptStore, AttemptStoreError, empty_attempts_frame
from .categories import Category
from .schemas import AttemptRecord, CategoryPerformance

logger = logging.getLogger(__name__)

WEAK_MIN_QUESTIONS = 5
WEAK_ACCURACY_THRESHOLD = 0.7


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PerformanceTracker:
    def __init__(self, store: AttemptStore, clock: Callable[[], datetime] = _utc_now):
        self.store = store
        self.clock = clock

    def record_attempt(
        self,
        question_id: str,
        category: Union[Category, str],
        was_correct: bool,
        time_taken_seconds: int = 0,
    ) -> AttemptRecord:
        record = AttemptRecord(
            question_id=question_id,
            timestamp=self.clock(),
            category=category,
            was_correct=was_correct,
            time_taken_seconds=time_taken_seconds,
        )
        self.store.append(record)
        return record

    def _attempts(self, category: Optional[Union[Category, str]] = None) -> pd.DataFrame:
        try:
            return self.store.query(category=category)
        except AttemptStoreError as exc:
            logger.warning("Error fetching attempts for performance: %s", exc)
            return empty_attempts_frame()

    def category_performance(self, category: Union[Category, str]) -> CategoryPerformance:
        category = Category.parse(category)
        return _summarize(category, self._attempts(category))

    def all_category_performance(self) -> Dict[str, CategoryPerformance]:
        """Performance keyed by category display value, for categories with at least one attempt."""
        attempts = self._attempts()
        performance: Dict[str, CategoryPerformance] = {}
        for name, group in attempts.groupby("category", sort=True):
            category = Category.parse(name)
            performance[category.value] = _summarize(category, group)
        return performance

    def weak_categories(
        self,
        min_questions: int = WEAK_MIN_QUESTIONS,
        threshold: float = WEAK_ACCURACY_THRESHOLD,
    ) -> List[CategoryPerformance]:
        """Categories with enough distinct questions and accuracy below threshold, weakest first."""
        weak = [
            perf
            for perf in self.all_category_performance().values()
            if perf.questions_answered >= min_questions and perf.accuracy < threshold
        ]
        return sorted(weak, key=lambda perf: perf.accuracy)

    def overall_accuracy(self) -> float:
        attempts = self._attempts()
        if attempts.empty:
            return 0.0
        return float(attempts["was_correct"].mean())

    def questions_seen(self) -> int:
        return int(self._attempts()["question_id"].nunique())


def _summarize(category: Category, attempts: pd.DataFrame) -> CategoryPerformance:
    return CategoryPerformance(
        category=category,
        questions_answered=int(attempts["question_id"].nunique()),
        total_attempts=int(len(attempts)),
        correct_attempts=int(attempts["was_correct"].sum()),
    )
