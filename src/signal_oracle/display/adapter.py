"""Display adapter: final signal override, confidence capping and wording."""

from typing import Optional, Sequence

from signal_oracle.core.config import DisplayConfig
from signal_oracle.core.types import (
    ConformalResult,
    DetailedInfo,
    MetaConfidenceResult,
    ModeProcessingResult,
    RiskLevel,
    Signal,
    TradingMode,
    UIColorCoding,
    UIDisplayResult,
)
from signal_oracle.core.utils import clamp


SIGNAL_COLORS = {
    Signal.BUY: "green",
    Signal.SELL: "red",
    Signal.HOLD: "orange",
}
RISK_INTENSITY = {
    RiskLevel.LOW: 1.0,
    RiskLevel.MODERATE: 0.8,
    RiskLevel.HIGH: 0.6,
}
NO_SIGNAL_TEXT = "No clear signal right now"
MONITORING_TEXT = "Monitoring market conditions"


def overall_risk(conformal_results: Sequence[ConformalResult]) -> RiskLevel:
    """High or low only when a strict majority of results says so."""
    if not conformal_results:
        return RiskLevel.MODERATE
    n = len(conformal_results)
    high = sum(1 for r in conformal_results if r.risk_level == RiskLevel.HIGH)
    low = sum(1 for r in conformal_results if r.risk_level == RiskLevel.LOW)
    if high > n // 2:
        return RiskLevel.HIGH
    if low > n // 2:
        return RiskLevel.LOW
    return RiskLevel.MODERATE


class UIAdapter:
    """Maps pipeline output into a display-safe payload."""

    def __init__(self, config: Optional[DisplayConfig] = None, expected_timeframes: int = 3):
        """
        Args:
            config: display band and wording thresholds
            expected_timeframes: number of timeframes shown in agreement text
        """
        self.config = config or DisplayConfig()
        self.expected_timeframes = expected_timeframes

    def adapt(
        self,
        meta: MetaConfidenceResult,
        mode_result: ModeProcessingResult,
        conformal_results: Sequence[ConformalResult],
    ) -> UIDisplayResult:
        confidence = self.cap_confidence(meta.final_confidence)
        signal = self.display_signal(mode_result.consensus_signal, confidence, mode_result.should_execute)
        risk = overall_risk(conformal_results)

        return UIDisplayResult(
            signal=signal,
            display_text=self.display_text(signal, confidence, mode_result.mode),
            confidence=confidence,
            confidence_display=self.confidence_display(signal, confidence),
            color_coding=self.color_coding(signal, confidence, risk),
            detailed_info=self.detailed_info(meta, mode_result, conformal_results, risk),
            should_show_details=(
                mode_result.mode == TradingMode.PRECISION or bool(mode_result.qualified_predictions)
            ),
        )

    def display_signal(self, consensus_signal: Signal, confidence: float, should_execute: bool) -> Signal:
        """BUY/SELL only for executable consensus at or above the display floor."""
        if consensus_signal == Signal.HOLD or not should_execute:
            return Signal.HOLD
        if confidence < self.config.min_confidence:
            return Signal.HOLD
        return consensus_signal

    def cap_confidence(self, confidence: float) -> float:
        return clamp(confidence, self.config.min_confidence, self.config.max_confidence)

    def display_text(self, signal: Signal, confidence: float, mode: TradingMode) -> str:
        cfg = self.config
        prefix = "[PRECISION] " if mode == TradingMode.PRECISION else ""

        if signal in (Signal.BUY, Signal.SELL):
            if confidence >= cfg.strong_threshold:
                return f"{prefix}Strong {signal.value} signal"
            if confidence >= cfg.regular_threshold:
                return f"{prefix}{signal.value} signal"
            return f"{prefix}Weak {signal.value} signal"

        if confidence >= cfg.hold_threshold:
            return f"{prefix}HOLD / Neutral"
        return NO_SIGNAL_TEXT

    def confidence_display(self, signal: Signal, confidence: float) -> str:
        percentage = int(confidence * 100)
        if signal in (Signal.BUY, Signal.SELL):
            return f"{percentage}% confidence"
        if confidence >= self.config.hold_threshold:
            return f"Neutral ({percentage}%)"
        return MONITORING_TEXT

    def color_coding(self, signal: Signal, confidence: float, risk: RiskLevel) -> UIColorCoding:
        if signal == Signal.HOLD:
            intensity = max(0.5, confidence)
        else:
            intensity = min(1.0, confidence * 1.2)

        return UIColorCoding(
            primary_color=SIGNAL_COLORS[signal],
            intensity=intensity * RISK_INTENSITY[risk],
            should_pulse=signal != Signal.HOLD and confidence >= self.config.pulse_threshold,
            risk_indicator=risk != RiskLevel.LOW,
        )

    def detailed_info(
        self,
        meta: MetaConfidenceResult,
        mode_result: ModeProcessingResult,
        conformal_results: Sequence[ConformalResult],
        risk: RiskLevel,
    ) -> DetailedInfo:
        qualified = mode_result.qualified_predictions
        distinct = len({q.prediction.signal for q in qualified})
        if distinct == 1:
            agreement = f"All {len(qualified)}/{self.expected_timeframes} models agree"
        else:
            agreement = (
                f"{len(qualified)}/{self.expected_timeframes} models qualified, "
                f"{distinct} different signals"
            )

        penalty = meta.uncertainty_penalty
        if penalty <= 0.2:
            uncertainty = "Low uncertainty (high reliability)"
        elif penalty <= 0.4:
            uncertainty = "Moderate uncertainty"
        else:
            uncertainty = "High uncertainty (low reliability)"

        passed = sum(1 for r in conformal_results if r.passes_gate)

        return DetailedInfo(
            model_agreement=agreement,
            uncertainty_analysis=uncertainty,
            risk_assessment=f"{risk.description} - {passed}/{len(conformal_results)} gates passed",
            quality_metrics=(
                f"Quality: {meta.quality_score * 100:.1f}%, Agreement: {meta.agreement_score * 100:.1f}%"
            ),
            consensus_details=mode_result.consensus_details,
            confidence_breakdown=meta.summary,
        )
