# ABOUTME: Tests YAML config loading and its defaults.
# ABOUTME: Ensures category quotas are validated against the diagnostic length.

from datetime import timedelta
from pathlib import Path

import pytest

from permit_prep.common.categories import Category
from permit_prep.common.config import AppConfig, config_from_dict, load_config

REPO_CONFIG = Path(__file__).resolve().parents[1] / "configs" / "permit_prep.yaml"


def test_defaults_when_file_missing(tmp_path):
    cfg = load_config(tmp_path / "absent.yaml")
    assert cfg == AppConfig()
    assert cfg.diagnostic.pass_threshold == 12
    assert cfg.recommendation.ttl == timedelta(hours=24)
    assert sum(cfg.diagnostic.category_quotas.values()) == 15


def test_repository_config_loads():
    cfg = load_config(REPO_CONFIG)
    assert cfg.analytics.timezone == "America/Los_Angeles"
    assert cfg.diagnostic.category_quotas[Category.SAFE_DRIVING] == 3
    assert cfg.recommendation.drift_threshold == pytest.approx(0.05)


def test_partial_sections_keep_defaults():
    cfg = config_from_dict({"analytics": {"daily_window_days": 14}, "paths": {"reports_dir": "out"}})
    assert cfg.analytics.daily_window_days == 14
    assert cfg.analytics.weekly_window_weeks == 12
    assert cfg.paths.reports_dir == Path("out")


def test_quotas_must_match_question_count():
    with pytest.raises(ValueError):
        config_from_dict({"diagnostic": {"category_quotas": {"Parking": 2}}})


def test_unknown_quota_category_is_rejected():
    with pytest.raises(ValueError):
        config_from_dict({"diagnostic": {"category_quotas": {"Boating": 15}}})


def test_category_parse_accepts_names_and_values():
    assert Category.parse("ALCOHOL_AND_DRUGS") is Category.ALCOHOL_AND_DRUGS
    assert Category.parse(" alcohol & drugs ") is Category.ALCOHOL_AND_DRUGS
    with pytest.raises(ValueError):
        Category.parse("Alcohol and Drugs")
