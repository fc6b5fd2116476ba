"""Tests for the display adapter."""

import pytest

from signal_oracle.core.types import (
    ComponentWeights,
    ConfidenceComponents,
    ConformalResult,
    ConsensusResult,
    ConsensusStrategy,
    MetaConfidenceResult,
    ModeProcessingResult,
    PredictionResult,
    QualifiedPrediction,
    RiskLevel,
    Signal,
    TradingMode,
    UncertaintyResult,
)
from signal_oracle.display import UIAdapter, overall_risk


def _meta(final, penalty=0.1):
    weights = ComponentWeights(agreement=0.3, uncertainty=0.25, quality=0.3, timeframe=0.15)
    return MetaConfidenceResult(
        final_confidence=final,
        agreement_score=0.9,
        uncertainty_penalty=penalty,
        quality_score=0.8,
        timeframe_score=0.85,
        raw_meta_confidence=0.8,
        mode_adjusted_confidence=0.76,
        components=ConfidenceComponents(0.27, 0.225, 0.24, 0.1275, weights),
    )


def _mode(signal=Signal.BUY, should_execute=True, mode=TradingMode.NORMAL, signals=("BUY", "BUY", "BUY")):
    qualified = tuple(
        QualifiedPrediction(
            prediction=PredictionResult(signal=Signal(s), confidence=0.8, model_id=f"{tf}_model", timeframe=tf),
            uncertainty=UncertaintyResult(0.1, 0.0, 0.1, (0.7, 0.9)),
            quality_score=0.83,
            timeframe_priority=0.8,
        )
        for s, tf in zip(signals, ("4h", "1h", "5m"))
    )
    consensus = ConsensusResult(
        signal=signal,
        confidence=0.8,
        rationale="Weighted consensus: 100.0% weight",
        strategy=ConsensusStrategy.WEIGHTED,
        agreed=signal != Signal.HOLD,
    )
    return ModeProcessingResult(
        mode=mode,
        consensus_signal=signal,
        consensus_confidence=0.8,
        mode_adjusted_confidence=0.72,
        qualified_predictions=qualified,
        consensus=consensus,
        should_execute=should_execute,
    )


def _gates(*risks, passes=True):
    prediction = PredictionResult(signal=Signal.BUY, confidence=0.8, model_id="m")
    return [
        ConformalResult(
            prediction=prediction,
            prediction_interval=(0.7, 0.9),
            passes_gate=passes,
            risk_level=risk,
            conformity_score=0.03,
            reliability=0.8,
        )
        for risk in risks
    ]


@pytest.mark.parametrize("final", [-1.0, 0.0, 0.3, 0.5, 0.75, 0.9, 1.0, 7.5, float("nan"), float("inf"), float("-inf")])
@pytest.mark.parametrize("signal", [Signal.BUY, Signal.SELL, Signal.HOLD])
def test_confidence_always_in_band(final, signal):
    """Display confidence stays in [0.5, 0.9] whatever meta reports."""
    display = UIAdapter().adapt(_meta(final), _mode(signal), _gates(RiskLevel.LOW))
    assert 0.5 <= display.confidence <= 0.9
    assert 0.0 <= display.color_coding.intensity <= 1.0


def test_strong_buy():
    """High confidence BUY renders strong and pulses."""
    display = UIAdapter().adapt(_meta(0.86), _mode(Signal.BUY), _gates(RiskLevel.LOW, RiskLevel.LOW))

    assert display.signal == Signal.BUY
    assert display.display_text == "Strong BUY signal"
    assert display.confidence_display == "86% confidence"
    assert display.color_coding.primary_color == "green"
    assert display.color_coding.intensity == pytest.approx(1.0)
    assert display.color_coding.should_pulse
    assert not display.color_coding.risk_indicator


@pytest.mark.parametrize("final,text", [(0.75, "SELL signal"), (0.65, "Weak SELL signal")])
def test_sell_wording(final, text):
    """Wording follows the 0.8 / 0.7 thresholds."""
    display = UIAdapter().adapt(_meta(final), _mode(Signal.SELL), _gates(RiskLevel.LOW))
    assert display.display_text == text
    assert display.color_coding.primary_color == "red"
    assert not display.color_coding.should_pulse


def test_not_executable_becomes_hold():
    """A BUY consensus that should not execute is shown as HOLD."""
    display = UIAdapter().adapt(_meta(0.85), _mode(Signal.BUY, should_execute=False), _gates(RiskLevel.LOW))
    assert display.signal == Signal.HOLD
    assert display.display_text == "HOLD / Neutral"
    assert display.confidence_display == "Neutral (85%)"
    assert display.color_coding.primary_color == "orange"
    assert not display.color_coding.should_pulse


def test_low_confidence_hold_text():
    """HOLD below 0.6 shows the no-signal message."""
    display = UIAdapter().adapt(_meta(0.55), _mode(Signal.HOLD, should_execute=False), _gates(RiskLevel.LOW))
    assert display.display_text == "No clear signal right now"
    assert display.confidence_display == "Monitoring market conditions"
    assert display.color_coding.intensity == pytest.approx(0.55)


def test_precision_prefix():
    """Precision mode prefixes the text."""
    display = UIAdapter().adapt(
        _meta(0.82), _mode(Signal.BUY, mode=TradingMode.PRECISION), _gates(RiskLevel.LOW)
    )
    assert display.display_text == "[PRECISION] Strong BUY signal"
    assert display.should_show_details


def test_risk_dims_intensity():
    """High overall risk scales intensity by 0.6 and raises the indicator."""
    display = UIAdapter().adapt(_meta(0.86), _mode(Signal.BUY), _gates(RiskLevel.HIGH, RiskLevel.HIGH, RiskLevel.LOW))
    assert display.color_coding.intensity == pytest.approx(0.6)
    assert display.color_coding.risk_indicator


def test_overall_risk_majority_rule():
    """High or low need more than half of the results."""
    assert overall_risk([]) == RiskLevel.MODERATE
    assert overall_risk(_gates(RiskLevel.HIGH, RiskLevel.HIGH, RiskLevel.LOW)) == RiskLevel.HIGH
    assert overall_risk(_gates(RiskLevel.LOW, RiskLevel.LOW, RiskLevel.HIGH)) == RiskLevel.LOW
    assert overall_risk(_gates(RiskLevel.LOW, RiskLevel.HIGH)) == RiskLevel.MODERATE


def test_detailed_info():
    """Detail strings describe agreement, uncertainty, risk and quality."""
    display = UIAdapter().adapt(_meta(0.8, penalty=0.3), _mode(signals=("BUY", "SELL", "BUY")), _gates(RiskLevel.LOW))
    info = display.detailed_info

    assert info.model_agreement == "3/3 models qualified, 2 different signals"
    assert info.uncertainty_analysis == "Moderate uncertainty"
    assert info.risk_assessment == "Low Risk - 1/1 gates passed"
    assert info.quality_metrics == "Quality: 80.0%, Agreement: 90.0%"
    assert info.consensus_details == "Weighted consensus: 100.0% weight"
    assert info.confidence_breakdown.startswith("Meta-Confidence: 80.0%")


def test_agreeing_models_text():
    """All qualified predictions agreeing."""
    display = UIAdapter().adapt(_meta(0.8), _mode(), _gates(RiskLevel.LOW))
    assert display.detailed_info.model_agreement == "All 3/3 models agree"
    assert display.detailed_info.uncertainty_analysis == "Low uncertainty (high reliability)"


def test_to_dict():
    """Payload serialises signal and colors."""
    payload = UIAdapter().adapt(_meta(0.86), _mode(Signal.BUY), _gates(RiskLevel.LOW)).to_dict()
    assert payload["signal"] == "BUY"
    assert payload["color"]["primary"] == "green"
    assert payload["details"]["model_agreement"] == "All 3/3 models agree"
    assert isinstance(payload["timestamp"], str)
