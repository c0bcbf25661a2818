# ABOUTME: Single-slot cache for the AI study recommendation with 24-hour expiry.
# ABOUTME: Also invalidates lazily when per-category accuracy drifts more than 5 points.

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Mapping, Optional, Protocol

from ..common.schemas import ensure_utc
from .preferences import PreferencesStore

logger = logging.getLogger(__name__)

CACHE_KEY = "ai_recommendation_cache"
TIMESTAMP_KEY = "ai_recommendation_timestamp"
ACCURACY_SNAPSHOT_KEY = "ai_recommendation_accuracy_snapshot"
ALL_KEYS = (CACHE_KEY, TIMESTAMP_KEY, ACCURACY_SNAPSHOT_KEY)

DEFAULT_TTL = timedelta(hours=24)
DEFAULT_DRIFT_THRESHOLD = 0.05
# Float noise tolerated at the drift boundary (0.75 - 0.70 is not exactly 0.05).
_DRIFT_EPSILON = 1e-9


class AccuracySource(Protocol):
    def all_category_performance(self) -> Mapping[str, Any]:
        ...


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RecommendationCache:
    """
    Holds one recommendation text, the time it was cached and the accuracy snapshot it was based on.

    Staleness is only detected on access: ``get`` purges the entry when the TTL has elapsed
    (checked first) or when accuracy has drifted (checked second).
    """

    def __init__(
        self,
        store: PreferencesStore,
        accuracy_source: AccuracySource,
        clock: Callable[[], datetime] = _utc_now,
        ttl: timedelta = DEFAULT_TTL,
        drift_threshold: float = DEFAULT_DRIFT_THRESHOLD,
    ):
        self.store = store
        self.accuracy_source = accuracy_source
        self.clock = clock
        self.ttl = ttl
        self.drift_threshold = drift_threshold
        self._lock = threading.Lock()

    def get(self) -> Optional[str]:
        with self._lock:
            cached_at = self._cached_at()
            if cached_at is None:
                return None

            if self._now() - cached_at >= self.ttl:
                logger.info("Recommendation cache expired (cached at %s)", cached_at.isoformat())
                self._clear()
                return None

            if self._has_accuracy_drifted():
                logger.info("Recommendation cache invalidated by accuracy drift")
                self._clear()
                return None

            text = self.store.get(CACHE_KEY)
            return text if isinstance(text, str) else None

    def put(self, text: str) -> None:
        # A failure while encoding leaves the stored entry untouched.
        values = {
            CACHE_KEY: str(text),
            TIMESTAMP_KEY: self._now().isoformat(),
            ACCURACY_SNAPSHOT_KEY: json.dumps(self._current_snapshot(), sort_keys=True),
        }
        with self._lock:
            self.store.update(values)

    def invalidate(self) -> None:
        with self._lock:
            self._clear()

    def should_force_refresh(self) -> bool:
        """True when accuracy has drifted enough that a new recommendation is warranted."""
        with self._lock:
            return self._has_accuracy_drifted()

    def cached_at(self) -> Optional[datetime]:
        with self._lock:
            return self._cached_at()

    def time_since_last_update(self) -> str:
        cached_at = self.cached_at()
        if cached_at is None:
            return "Never"

        elapsed = max((self._now() - cached_at).total_seconds(), 0.0)
        hours = int(elapsed // 3600)
        if hours == 0:
            minutes = int(elapsed // 60)
            if minutes < 1:
                return "Just now"
            return f"{minutes}m ago"
        if hours < 24:
            return f"{hours}h ago"
        return f"{hours // 24}d ago"

    # Internals, called with the lock held.

    def _now(self) -> datetime:
        return ensure_utc(self.clock())

    def _clear(self) -> None:
        self.store.remove(ALL_KEYS)

    def _cached_at(self) -> Optional[datetime]:
        raw = self.store.get(TIMESTAMP_KEY)
        if not isinstance(raw, str):
            return None
        try:
            return ensure_utc(datetime.fromisoformat(raw))
        except ValueError:
            logger.warning("Ignoring corrupt recommendation timestamp %r", raw)
            return None

    def _saved_snapshot(self) -> Optional[Dict[str, float]]:
        raw = self.store.get(ACCURACY_SNAPSHOT_KEY)
        if raw is None:
            return None
        try:
            decoded = json.loads(raw) if isinstance(raw, str) else raw
            if not isinstance(decoded, dict):
                raise ValueError("snapshot is not a mapping")
            return {str(category): float(accuracy) for category, accuracy in decoded.items()}
        except (TypeError, ValueError) as exc:
            logger.warning("Ignoring corrupt accuracy snapshot: %s", exc)
            return None

    def _current_snapshot(self) -> Dict[str, float]:
        snapshot = {}
        for category, performance in self.accuracy_source.all_category_performance().items():
            snapshot[str(category)] = float(getattr(performance, "accuracy", performance))
        return snapshot

    def _has_accuracy_drifted(self) -> bool:
        saved = self._saved_snapshot()
        if saved is None:
            return False

        current = self._current_snapshot()
        for category, saved_accuracy in saved.items():
            if category not in current:
                continue
            change = abs(current[category] - saved_accuracy)
            if change - self.drift_threshold > _DRIFT_EPSILON:
                return True

        return any(category not in saved for category in current)
