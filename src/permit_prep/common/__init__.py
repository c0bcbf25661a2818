# ABOUTME: Makes the shared common package importable across components.
# ABOUTME: Re-exports categories, schema types, config loading and the attempt stores.

from .attempt_store import AttemptStore, AttemptStoreError, MemoryAttemptStore, ParquetAttemptStore
from .categories import Category
from .config import AppConfig, load_config
from .performance import PerformanceTracker
from .schemas import (
    AnswerRecord,
    AttemptRecord,
    CategoryPerformance,
    CategoryTrendPoint,
    DailyStats,
    Question,
    WeeklyStats,
)

__all__ = [
    "AnswerRecord",
    "AppConfig",
    "AttemptRecord",
    "AttemptStore",
    "AttemptStoreError",
    "Category",
    "CategoryPerformance",
    "CategoryTrendPoint",
    "DailyStats",
    "MemoryAttemptStore",
    "ParquetAttemptStore",
    "PerformanceTracker",
    "Question",
    "WeeklyStats",
    "load_config",
]
