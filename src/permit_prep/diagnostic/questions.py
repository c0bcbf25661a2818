# ABOUTME: Loads question files and selects the 15 questions of a diagnostic test.
# ABOUTME: Falls back to per-category quotas with random backfill when the diagnostic pool is unusable.

from __future__ import annotations

import json
import logging
import random
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

from ..common.categories import Category
from ..common.config import DEFAULT_CATEGORY_QUOTAS
from ..common.schemas import Question

logger = logging.getLogger(__name__)

DIAGNOSTIC_QUESTION_COUNT = 15


def load_questions(path: Path) -> List[Question]:
    """
    Load a JSON array of questions.

    A missing file or any malformed entry yields an empty list (logged), never an exception.
    """

    path = Path(path)
    if not path.exists():
        logger.warning("Could not find question file %s", path)
        return []

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(payload, list):
            raise ValueError("expected a JSON array of questions")
        questions = [Question.from_dict(item) for item in payload]
    except (OSError, ValueError, KeyError, TypeError) as exc:
        logger.warning("Failed to load questions from %s: %s", path, exc)
        return []

    logger.info("Loaded %d questions from %s", len(questions), path)
    return questions


def _unique_by_id(questions: Sequence[Question]) -> List[Question]:
    seen = set()
    unique = []
    for question in questions:
        if question.id in seen:
            continue
        seen.add(question.id)
        unique.append(question)
    return unique


class DiagnosticQuestionSelector:
    """
    Picks diagnostic questions from a dedicated pool, or from the general pool by category quota.
    """

    def __init__(
        self,
        diagnostic_pool: Sequence[Question],
        general_pool: Sequence[Question],
        category_quotas: Optional[Mapping[Category, int]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.diagnostic_pool = list(diagnostic_pool)
        self.general_pool = list(general_pool)
        self.category_quotas: Dict[Category, int] = dict(category_quotas or DEFAULT_CATEGORY_QUOTAS)
        self.rng = rng or random.Random()

    @classmethod
    def from_files(
        cls,
        diagnostic_path: Path,
        general_path: Path,
        category_quotas: Optional[Mapping[Category, int]] = None,
        rng: Optional[random.Random] = None,
    ) -> "DiagnosticQuestionSelector":
        return cls(load_questions(diagnostic_path), load_questions(general_path), category_quotas, rng)

    def select(self, count: int = DIAGNOSTIC_QUESTION_COUNT) -> List[Question]:
        if len(self.diagnostic_pool) >= count:
            return self.rng.sample(self.diagnostic_pool, count)

        logger.warning(
            "Using fallback questions: diagnostic pool has %d of %d questions",
            len(self.diagnostic_pool),
            count,
        )
        return self._select_by_quota(count)

    def _select_by_quota(self, count: int) -> List[Question]:
        pool = _unique_by_id(self.general_pool)

        quota_items = list(self.category_quotas.items())
        self.rng.shuffle(quota_items)

        selected: List[Question] = []
        for category, quota in quota_items:
            candidates = [question for question in pool if question.category == category]
            selected.extend(self.rng.sample(candidates, min(quota, len(candidates))))

        # Backfill from the rest of the pool when a category runs short.
        if len(selected) < count:
            chosen_ids = {question.id for question in selected}
            remaining = [question for question in pool if question.id not in chosen_ids]
            needed = count - len(selected)
            if len(remaining) < needed:
                logger.warning(
                    "Question pool only has %d unique questions; diagnostic will have %d",
                    len(pool),
                    len(selected) + len(remaining),
                )
            selected.extend(self.rng.sample(remaining, min(needed, len(remaining))))

        selected = selected[:count]
        self.rng.shuffle(selected)
        return selected
