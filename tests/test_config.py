"""Tests for configuration loading."""

from pathlib import Path

import pytest

from signal_oracle.core.config import Config, ModeConfig, load_config
from signal_oracle.core.errors import ConfigError
from signal_oracle.core.types import ConsensusStrategy, TradingMode


def test_default_policy_constants():
    """Default policy values match the documented tables."""
    config = Config.default()

    assert config.pipeline.min_cycle_interval_s == 0.5
    assert config.conformal.alpha == 0.1
    assert config.conformal.max_interval_width == 0.4
    assert config.conformal.max_uncertainty == 0.35
    assert config.conformal.min_criteria == 3

    normal = config.modes.for_mode(TradingMode.NORMAL)
    assert normal.consensus_strategy == ConsensusStrategy.WEIGHTED
    assert normal.execution_threshold == 0.65

    precision = config.modes.for_mode(TradingMode.PRECISION)
    assert precision.consensus_strategy == ConsensusStrategy.UNANIMOUS
    assert precision.min_quality == 0.75


def test_repository_default_yaml_matches_defaults():
    """config/default.yaml carries the built-in values."""
    loaded = load_config()
    default = Config.default()

    assert loaded.conformal == default.conformal
    assert loaded.modes == default.modes
    assert loaded.meta == default.meta
    assert loaded.display == default.display


def test_partial_mode_override(tmp_path: Path):
    """Keys omitted in a mode section keep their defaults."""
    path = tmp_path / "config.yaml"
    path.write_text(
        "pipeline:\n"
        "  mode: precision\n"
        "modes:\n"
        "  precision:\n"
        "    min_confidence: 0.75\n",
        encoding="utf-8",
    )

    config = load_config(path)

    assert config.pipeline.mode == TradingMode.PRECISION
    assert config.modes.precision.min_confidence == 0.75
    assert config.modes.precision.max_uncertainty == ModeConfig.precision().max_uncertainty
    assert config.modes.normal == ModeConfig.normal()


def test_missing_file_gives_defaults(tmp_path: Path):
    """A path that does not exist falls back to defaults."""
    config = load_config(tmp_path / "absent.yaml")
    assert config.conformal.alpha == 0.1


@pytest.mark.parametrize("content", [
    "conformal:\n  alpha: 1.5\n",
    "pipeline:\n  mode: turbo\n",
    "- just\n- a list\n",
    "conformal: [unclosed\n",
    "ensemble:\n  timeframes: [5m, fortnight]\n",
    "ensemble:\n  timeframes: []\n",
    "ensemble:\n  timeframes: [1h, 1H]\n",
])
def test_invalid_config_raises(tmp_path: Path, content):
    """Invalid values, non-mapping files and broken YAML raise ConfigError."""
    path = tmp_path / "bad.yaml"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(path)


def test_timeframes_normalized(tmp_path: Path):
    """Timeframe labels are trimmed and lower-cased on load."""
    path = tmp_path / "config.yaml"
    path.write_text("ensemble:\n  timeframes: [' 15M', 1H, 1d]\n", encoding="utf-8")

    config = load_config(path)

    assert config.ensemble.timeframes == ["15m", "1h", "1d"]
