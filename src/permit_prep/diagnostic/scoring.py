# ABOUTME: Scores a completed diagnostic test into pass/fail and per-category weakness flags.
# ABOUTME: Uses the fixed 12-of-15 pass mark regardless of how many answers were submitted.

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Dict, List, Sequence, Union

from ..common.categories import Category
from ..common.schemas import AnswerRecord

PASS_THRESHOLD = 12  # 80% of 15 questions
WEAK_THRESHOLD = 0.70


@dataclass(frozen=True)
class CategoryScore:
    correct: int
    total: int
    is_weak: bool

    @property
    def percentage(self) -> int:
        if self.total <= 0:
            return 0
        return self.correct * 100 // self.total


@dataclass(frozen=True)
class DiagnosticResult:
    score: int
    total_questions: int
    category_breakdown: Dict[Category, CategoryScore] = field(default_factory=dict)
    time_taken: timedelta = timedelta(0)
    pass_threshold: int = PASS_THRESHOLD

    @property
    def percentage(self) -> int:
        if self.total_questions <= 0:
            return 0
        return self.score * 100 // self.total_questions

    @property
    def passed(self) -> bool:
        return self.score >= self.pass_threshold

    @property
    def gap_points(self) -> int:
        """Points short of the pass mark; zero or negative once passed."""
        return self.pass_threshold - self.score

    @property
    def weak_categories(self) -> List[Category]:
        return [category for category, score in self.category_breakdown.items() if score.is_weak]


def score_diagnostic(
    answers: Sequence[AnswerRecord],
    time_taken: Union[timedelta, float],
    pass_threshold: int = PASS_THRESHOLD,
    weak_threshold: float = WEAK_THRESHOLD,
) -> DiagnosticResult:
    """
    Tally a diagnostic attempt.

    Categories keep the order in which they first appear in ``answers``. A category is weak
    when its unrounded correct/total ratio is below ``weak_threshold`` (7 of 10 is not weak).
    """

    if not isinstance(time_taken, timedelta):
        time_taken = timedelta(seconds=float(time_taken))

    counts: Dict[Category, List[int]] = {}
    for answer in answers:
        tally = counts.setdefault(answer.question.category, [0, 0])
        tally[0] += 1 if answer.was_correct else 0
        tally[1] += 1

    breakdown: Dict[Category, CategoryScore] = {}
    for category, (correct, total) in counts.items():
        ratio = correct / total if total > 0 else 0.0
        breakdown[category] = CategoryScore(correct=correct, total=total, is_weak=ratio < weak_threshold)

    return DiagnosticResult(
        score=sum(1 for answer in answers if answer.was_correct),
        total_questions=len(answers),
        category_breakdown=breakdown,
        time_taken=time_taken,
        pass_threshold=pass_threshold,
    )
