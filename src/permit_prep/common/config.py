# ABOUTME: Loads YAML configuration into frozen dataclasses for every component.
# ABOUTME: Missing keys fall back to the app's built-in thresholds and windows.

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .categories import Category

DEFAULT_CATEGORY_QUOTAS: Dict[Category, int] = {
    Category.TRAFFIC_SIGNS: 3,
    Category.TRAFFIC_LAWS: 3,
    Category.SAFE_DRIVING: 3,
    Category.RIGHT_OF_WAY: 2,
    Category.ALCOHOL_AND_DRUGS: 2,
    Category.PARKING: 2,
}


@dataclass(frozen=True)
class AnalyticsConfig:
    timezone: str = "UTC"
    daily_window_days: int = 30
    weekly_window_weeks: int = 12


@dataclass(frozen=True)
class DiagnosticConfig:
    question_count: int = 15
    pass_threshold: int = 12  # 80% of 15 questions
    weak_threshold: float = 0.70
    category_quotas: Mapping[Category, int] = field(default_factory=lambda: dict(DEFAULT_CATEGORY_QUOTAS))


@dataclass(frozen=True)
class RecommendationConfig:
    ttl_hours: float = 24.0
    drift_threshold: float = 0.05
    model: str = "claude-3-haiku-20240307"
    max_tokens: int = 300

    @property
    def ttl(self) -> timedelta:
        return timedelta(hours=self.ttl_hours)


@dataclass(frozen=True)
class PathsConfig:
    attempts_path: Path = Path("data/attempts.parquet")
    diagnostic_questions_path: Path = Path("data/diagnostic_questions.json")
    question_pool_path: Path = Path("data/questions.json")
    preferences_path: Path = Path("data/preferences.json")
    reports_dir: Path = Path("reports")


@dataclass(frozen=True)
class AppConfig:
    analytics: AnalyticsConfig = field(default_factory=AnalyticsConfig)
    diagnostic: DiagnosticConfig = field(default_factory=DiagnosticConfig)
    recommendation: RecommendationConfig = field(default_factory=RecommendationConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """
    Read a YAML config file; a missing path (or None) yields the defaults.
    """

    if config_path is None or not Path(config_path).exists():
        return AppConfig()

    with open(config_path) as f:
        cfg = yaml.safe_load(f) or {}
    if not isinstance(cfg, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping at the top level.")
    return config_from_dict(cfg)


def config_from_dict(cfg: Mapping[str, Any]) -> AppConfig:
    analytics_cfg = dict(cfg.get("analytics") or {})
    diagnostic_cfg = dict(cfg.get("diagnostic") or {})
    recommendation_cfg = dict(cfg.get("recommendation") or {})
    paths_cfg = {key: Path(value) for key, value in (cfg.get("paths") or {}).items()}

    quotas = diagnostic_cfg.pop("category_quotas", None)
    if quotas is not None:
        diagnostic_cfg["category_quotas"] = {Category.parse(name): int(count) for name, count in quotas.items()}

    diagnostic = DiagnosticConfig(**diagnostic_cfg)
    if sum(diagnostic.category_quotas.values()) != diagnostic.question_count:
        raise ValueError(
            f"category_quotas sum to {sum(diagnostic.category_quotas.values())}, "
            f"expected question_count={diagnostic.question_count}."
        )

    return AppConfig(
        analytics=AnalyticsConfig(**analytics_cfg),
        diagnostic=diagnostic,
        recommendation=RecommendationConfig(**recommendation_cfg),
        paths=PathsConfig(**paths_cfg),
    )
