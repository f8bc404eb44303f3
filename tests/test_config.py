# ABOUTME: Tests engine configuration defaults, YAML loading, and rejection of bad keys.
# ABOUTME: Loads the shipped configs/engine.yaml to keep it in sync with the dataclasses.

from pathlib import Path

import pytest
import yaml

from src.common.config import EngineConfig, engine_config_from_dict, load_engine_config

REPO_ROOT = Path(__file__).resolve().parents[1]


def test_defaults_without_config_file():
    config = load_engine_config(None)
    assert config == EngineConfig()
    assert config.aggregation.refinement_window_ms == 300_000
    assert config.trend.min_points == 3
    assert config.pattern.min_history == 10
    assert config.history_window_days == 30


def test_shipped_yaml_matches_defaults():
    assert load_engine_config(REPO_ROOT / "configs" / "engine.yaml") == EngineConfig()


def test_partial_override_keeps_other_defaults(tmp_path):
    path = tmp_path / "engine.yaml"
    path.write_text(yaml.safe_dump({"aggregation": {"reopen_policy": "keep_first"}, "history_window_days": 14}))
    config = load_engine_config(path)
    assert config.aggregation.reopen_policy == "keep_first"
    assert config.aggregation.acceptance_window_ms == 120_000
    assert config.history_window_days == 14


def test_mapping_overrides_merge_into_defaults():
    config = engine_config_from_dict({"validation": {"ranges": {"session_count": [0, 80]}}})
    assert config.validation.ranges["session_count"] == (0, 80)
    assert config.validation.ranges["active_time"] == (0.0, 1440.0)

    scoring = engine_config_from_dict({"scoring": {"style_bonus": {"mixed": 30}}}).scoring
    assert scoring.style_bonus == {"hypothesis-driven": 40.0, "mixed": 30, "trial-and-error": 10.0}


def test_unknown_section_rejected():
    with pytest.raises(ValueError, match="Unknown config section"):
        engine_config_from_dict({"metrics": {}})


def test_unknown_key_rejected():
    with pytest.raises(ValueError, match="Unknown keys in 'trend'"):
        engine_config_from_dict({"trend": {"window": 7}})


def test_invalid_values_rejected():
    with pytest.raises(ValueError):
        engine_config_from_dict({"aggregation": {"reopen_policy": "latest"}})
    with pytest.raises(ValueError):
        engine_config_from_dict({"scoring": {"resolution_worst_minutes": 5}})
    with pytest.raises(ValueError):
        engine_config_from_dict({"history_window_days": 0})
