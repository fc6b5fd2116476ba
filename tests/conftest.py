"""Shared fixtures: prediction and uncertainty factories."""

import pytest

from signal_oracle.core.config import Config
from signal_oracle.core.types import PredictionResult, Signal, UncertaintyResult


@pytest.fixture
def config():
    """Default configuration."""
    return Config.default()


@pytest.fixture
def make_prediction():
    """Factory for per-timeframe predictions."""

    def _make(signal="BUY", confidence=0.8, timeframe="5m", **meta):
        return PredictionResult(
            signal=Signal(signal),
            confidence=confidence,
            model_id=f"{timeframe}_model",
            timeframe=timeframe,
            meta=dict(meta),
        )

    return _make


@pytest.fixture
def make_uncertainty():
    """Factory for uncertainties with a given total."""

    def _make(total=0.1, epistemic=None, aleatoric=None, interval=(0.3, 0.7)):
        return UncertaintyResult(
            epistemic=total if epistemic is None else epistemic,
            aleatoric=0.0 if aleatoric is None else aleatoric,
            total=total,
            confidence_interval=interval,
        )

    return _make


@pytest.fixture
def three_buys(make_prediction):
    """BUY@0.8 / BUY@0.75 / BUY@0.9 on 5m / 1h / 4h."""
    return [
        make_prediction("BUY", 0.8, "5m"),
        make_prediction("BUY", 0.75, "1h"),
        make_prediction("BUY", 0.9, "4h"),
    ]
