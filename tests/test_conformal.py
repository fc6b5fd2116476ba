"""Tests for the conformal gate."""

import pytest

from signal_oracle.conformal import (
    DEFAULT_CALIBRATION,
    ConformalGate,
    conformal_quantile,
    conformity_scores,
    quantile_index,
)
from signal_oracle.core.config import ConformalConfig
from signal_oracle.core.types import RiskLevel


@pytest.mark.parametrize("n", [1, 2, 3, 5, 16, 100, 1000])
@pytest.mark.parametrize("alpha", [1e-6, 0.01, 0.05, 0.1, 0.25, 0.5, 0.9, 0.999999])
def test_quantile_index_always_valid(n, alpha):
    """The quantile index is inside [0, n - 1] for every alpha in (0, 1)."""
    assert 0 <= quantile_index(n, alpha) <= n - 1


def test_quantile_index_formula():
    """Index is ceil((n + 1)(1 - alpha)) - 1 when that is in range."""
    assert quantile_index(16, 0.1) == 15
    assert quantile_index(100, 0.1) == 90
    assert quantile_index(9, 0.5) == 4


def test_quantile_index_rejects_empty():
    """There is no quantile of zero scores."""
    with pytest.raises(ValueError):
        quantile_index(0, 0.1)
    assert conformal_quantile([], 0.1) is None


def test_default_calibration_quantile():
    """Built-in calibration gives a quantile of 0.03."""
    scores = conformity_scores(DEFAULT_CALIBRATION)
    assert scores == sorted(scores)
    assert len(scores) == 16

    gate = ConformalGate()
    assert gate.quantile == pytest.approx(0.03)


def test_custom_calibration_from_config():
    """Calibration pairs in the config replace the built-in set."""
    gate = ConformalGate(ConformalConfig(calibration=[(0.6, 0.5), (0.7, 0.5), (0.8, 0.5)]))
    assert gate.conformity_scores == pytest.approx((0.1, 0.2, 0.3))
    assert gate.quantile == pytest.approx(0.3)


def test_low_confidence_high_uncertainty_blocked(make_prediction, make_uncertainty):
    """Only the signal-strength criterion holds, so the gate blocks."""
    gate = ConformalGate()
    result = gate.evaluate(make_prediction("BUY", 0.5), make_uncertainty(0.5))

    assert result.interval_width == pytest.approx(0.56)
    assert result.criteria_passed == 1
    assert not result.passes_gate
    assert result.risk_level == RiskLevel.HIGH
    assert result.reliability == pytest.approx(0.44)


def test_confident_prediction_passes(make_prediction, make_uncertainty):
    """A confident, low-uncertainty prediction passes all four criteria."""
    gate = ConformalGate()
    result = gate.evaluate(make_prediction("SELL", 0.8), make_uncertainty(0.1))

    assert result.passes_gate
    assert result.criteria_passed == 4
    assert result.prediction_interval == pytest.approx((0.72, 0.88))
    assert result.risk_level == RiskLevel.LOW


def test_three_of_four_is_enough(make_prediction, make_uncertainty):
    """Failing a single criterion still passes."""
    gate = ConformalGate()
    # confidence below 0.55, everything else fine
    result = gate.evaluate(make_prediction("BUY", 0.52), make_uncertainty(0.1))
    assert result.criteria_passed == 3
    assert result.passes_gate


def test_weak_hold_fails_signal_strength(make_prediction, make_uncertainty):
    """HOLD needs at least 0.6 confidence to count as a strong signal."""
    gate = ConformalGate()
    weak = gate.evaluate(make_prediction("HOLD", 0.58), make_uncertainty(0.1))
    strong = gate.evaluate(make_prediction("HOLD", 0.65), make_uncertainty(0.1))

    assert weak.criteria_passed == 3
    assert strong.criteria_passed == 4


def test_interval_clipped_to_unit_range(make_prediction, make_uncertainty):
    """Intervals never leave [0, 1]."""
    gate = ConformalGate()
    high = gate.evaluate(make_prediction("BUY", 0.99), make_uncertainty(0.3))
    low = gate.evaluate(make_prediction("SELL", 0.01), make_uncertainty(0.3))
    assert high.prediction_interval[1] == 1.0
    assert low.prediction_interval[0] == 0.0


def test_risk_thresholds(make_uncertainty):
    """Risk score 0.6 * total + 0.4 * width against 0.2 / 0.4."""
    gate = ConformalGate()
    assert gate.risk_level(0.1, make_uncertainty(0.1)) == RiskLevel.LOW
    assert gate.risk_level(0.3, make_uncertainty(0.3)) == RiskLevel.MODERATE
    assert gate.risk_level(0.6, make_uncertainty(0.5)) == RiskLevel.HIGH


def test_batch_length_mismatch(make_prediction, make_uncertainty):
    """Mismatched batches evaluate nothing."""
    gate = ConformalGate()
    results = gate.evaluate_batch([make_prediction(), make_prediction()], [make_uncertainty()])
    assert results == []
    assert gate.statistics().total_evaluations == 0


def test_statistics(make_prediction, make_uncertainty):
    """Statistics summarise the evaluation history."""
    gate = ConformalGate(ConformalConfig(history_size=3))
    gate.evaluate_batch(
        [make_prediction("BUY", 0.8), make_prediction("BUY", 0.5)],
        [make_uncertainty(0.1), make_uncertainty(0.5)],
    )

    stats = gate.statistics()
    assert stats.total_evaluations == 2
    assert stats.passed_evaluations == 1
    assert stats.pass_rate == pytest.approx(0.5)
    assert stats.average_interval_width == pytest.approx((0.16 + 0.56) / 2)
    assert stats.alpha == 0.1

    for _ in range(5):
        gate.evaluate(make_prediction("BUY", 0.8), make_uncertainty(0.1))
    assert gate.statistics().total_evaluations == 3

    gate.reset_statistics()
    assert gate.statistics().total_evaluations == 0
    assert gate.statistics().pass_rate == 0.0


def test_conformity_score_is_rms():
    """Conformity score is the RMS of the calibration errors."""
    gate = ConformalGate(ConformalConfig(calibration=[(0.5, 0.2), (0.5, 0.9)]))
    assert gate.conformity_score() == pytest.approx(((0.3 ** 2 + 0.4 ** 2) / 2) ** 0.5)
