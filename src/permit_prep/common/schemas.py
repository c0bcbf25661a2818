# ABOUTME: Defines canonical data structures shared by analytics, diagnostic and recommendation code.
# ABOUTME: Centralizes attempt, bucket, question and performance schema definitions.

from __future__ import annotations

import random
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .categories import Category

ANSWER_LETTERS = ("A", "B", "C", "D")


def ensure_utc(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC; leave aware ones untouched."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class AttemptRecord:
    """One answered question. Written once, never mutated."""

    question_id: str
    timestamp: datetime
    category: Category
    was_correct: bool
    time_taken_seconds: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "timestamp", ensure_utc(self.timestamp))
        object.__setattr__(self, "category", Category.parse(self.category))
        if self.time_taken_seconds < 0:
            raise ValueError(f"time_taken_seconds must be >= 0, got {self.time_taken_seconds}.")

    def to_row(self) -> Dict[str, Any]:
        return {
            "question_id": self.question_id,
            "timestamp": self.timestamp,
            "category": self.category.value,
            "was_correct": bool(self.was_correct),
            "time_taken_seconds": int(self.time_taken_seconds),
        }


@dataclass(frozen=True)
class DailyStats:
    """Attempts aggregated over one calendar day."""

    day_start: datetime
    questions_answered: int
    correct_answers: int
    accuracy: float
    total_time_spent: timedelta


@dataclass(frozen=True)
class WeeklyStats:
    """Attempts aggregated over one calendar (ISO) week."""

    week_start: datetime
    questions_answered: int
    correct_answers: int
    accuracy: float
    time_spent: timedelta
    days_studied: int


@dataclass(frozen=True)
class CategoryTrendPoint:
    category: Category
    day_start: datetime
    accuracy: float
    attempts: int


@dataclass(frozen=True)
class CategoryPerformance:
    """Lifetime performance of one category."""

    category: Category
    questions_answered: int
    total_attempts: int
    correct_attempts: int

    @property
    def accuracy(self) -> float:
        if self.total_attempts <= 0:
            return 0.0
        return self.correct_attempts / self.total_attempts

    @property
    def is_weak(self) -> bool:
        return self.questions_answered >= 5 and self.accuracy < 0.7


@dataclass(frozen=True)
class Question:
    """A multiple-choice question as stored in the bundled question files."""

    id: str
    text: str
    correct_answer: str
    category: Category
    answer_a: Optional[str] = None
    answer_b: Optional[str] = None
    answer_c: Optional[str] = None
    answer_d: Optional[str] = None
    explanation: Optional[str] = None
    image_name: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "category", Category.parse(self.category))

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Question":
        """Build a question from the camelCase JSON layout of the question files."""
        return cls(
            id=str(payload["id"]),
            text=str(payload["questionText"]),
            correct_answer=str(payload["correctAnswer"]),
            category=payload["category"],
            answer_a=payload.get("answerA"),
            answer_b=payload.get("answerB"),
            answer_c=payload.get("answerC"),
            answer_d=payload.get("answerD"),
            explanation=payload.get("explanation"),
            image_name=payload.get("imageName"),
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "questionText": self.text,
            "answerA": self.answer_a,
            "answerB": self.answer_b,
            "answerC": self.answer_c,
            "answerD": self.answer_d,
            "correctAnswer": self.correct_answer,
            "category": self.category.value,
        }
        if self.explanation is not None:
            payload["explanation"] = self.explanation
        if self.image_name is not None:
            payload["imageName"] = self.image_name
        return payload

    def options(self) -> List[Tuple[str, str]]:
        """Present (letter, text) pairs in letter order."""
        raw = (self.answer_a, self.answer_b, self.answer_c, self.answer_d)
        return [(letter, text) for letter, text in zip(ANSWER_LETTERS, raw) if text is not None]

    def with_shuffled_answers(self, rng: Optional[random.Random] = None) -> "Question":
        """
        Return a copy with the answer options shuffled and the correct letter remapped.

        Questions whose correct letter does not match a present option are returned unchanged.
        """
        rng = rng or random.Random()
        options = self.options()
        correct_text = next((text for letter, text in options if letter == self.correct_answer), None)
        if correct_text is None:
            return self

        shuffled = [text for _, text in options]
        rng.shuffle(shuffled)
        new_letter = ANSWER_LETTERS[shuffled.index(correct_text)]
        padded = shuffled + [None] * (len(ANSWER_LETTERS) - len(shuffled))
        return replace(
            self,
            answer_a=padded[0],
            answer_b=padded[1],
            answer_c=padded[2],
            answer_d=padded[3],
            correct_answer=new_letter,
        )


@dataclass(frozen=True)
class AnswerRecord:
    """A learner's answer to one question inside a quiz or diagnostic."""

    question: Question
    user_answer: str
    was_correct: bool
