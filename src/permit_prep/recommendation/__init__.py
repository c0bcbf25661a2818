# ABOUTME: Groups the AI recommendation cache, its preference stores and the generation service.
# ABOUTME: Re-exports the public cache, service and generator types.

from .cache import RecommendationCache
from .llm import ClaudeRecommendationGenerator, RecommendationGenerationError, build_recommendation_prompt
from .preferences import JsonPreferencesStore, MemoryPreferencesStore, PreferencesStore
from .service import Recommendation, RecommendationService, extract_mentioned_categories

__all__ = [
    "ClaudeRecommendationGenerator",
    "JsonPreferencesStore",
    "MemoryPreferencesStore",
    "PreferencesStore",
    "Recommendation",
    "RecommendationCache",
    "RecommendationGenerationError",
    "RecommendationService",
    "build_recommendation_prompt",
    "extract_mentioned_categories",
]
