# ABOUTME: Serves the cached AI recommendation or regenerates it when the cache is stale.
# ABOUTME: The cache only gates generation; this service decides when to call the generator.

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from ..common.categories import Category
from ..common.performance import PerformanceTracker
from ..common.schemas import CategoryPerformance
from .cache import RecommendationCache
from .llm import RecommendationGenerationError

logger = logging.getLogger(__name__)

RecommendationGenerator = Callable[[Sequence[CategoryPerformance], float, int], str]

MAX_PROMPT_CATEGORIES = 3


@dataclass(frozen=True)
class Recommendation:
    text: str
    from_cache: bool
    focus_categories: List[Category] = field(default_factory=list)
    top_weak_accuracy: Optional[float] = None


def extract_mentioned_categories(text: str, weak_categories: Sequence[CategoryPerformance]) -> List[Category]:
    """Weak categories named in ``text``; the two weakest when none are named."""
    lowered = text.lower()
    mentioned = [perf.category for perf in weak_categories if perf.category.value.lower() in lowered]
    if not mentioned:
        mentioned = [perf.category for perf in weak_categories[:2]]
    return mentioned


class RecommendationService:
    def __init__(
        self,
        cache: RecommendationCache,
        tracker: PerformanceTracker,
        generator: RecommendationGenerator,
    ):
        self.cache = cache
        self.tracker = tracker
        self.generator = generator

    def recommend(self) -> Optional[Recommendation]:
        weak = self.tracker.weak_categories()
        top_accuracy = weak[0].accuracy if weak else None

        cached = self.cache.get()
        if cached is not None:
            return Recommendation(
                text=cached,
                from_cache=True,
                focus_categories=extract_mentioned_categories(cached, weak),
                top_weak_accuracy=top_accuracy,
            )

        try:
            text = self.generator(
                weak[:MAX_PROMPT_CATEGORIES],
                self.tracker.overall_accuracy(),
                self.tracker.questions_seen(),
            )
        except RecommendationGenerationError as exc:
            logger.warning("Failed to get AI recommendation: %s", exc)
            return None

        self.cache.put(text)
        return Recommendation(
            text=text,
            from_cache=False,
            focus_categories=extract_mentioned_categories(text, weak),
            top_weak_accuracy=top_accuracy,
        )

    def refresh_after_quiz(self) -> bool:
        """Drop the cached recommendation when accuracy drifted; returns whether it did."""
        if self.cache.should_force_refresh():
            self.cache.invalidate()
            return True
        return False
