"""Conformal prediction gate: calibrated intervals and risk-aware admission."""

import math
from collections import deque
from typing import Optional, Sequence

from signal_oracle.conformal.calibration import (
    DEFAULT_CALIBRATION,
    conformal_quantile,
    conformity_scores,
)
from signal_oracle.core.config import ConformalConfig
from signal_oracle.core.log import get_logger
from signal_oracle.core.types import (
    ConformalResult,
    GateStatistics,
    Interval,
    PredictionResult,
    RiskLevel,
    Signal,
    UncertaintyResult,
)
from signal_oracle.core.utils import count_true, mean, safe_div

logger = get_logger(__name__)


class ConformalGate:
    """Turns a point confidence into a calibrated interval and admits or rejects it.

    Admission is a soft vote over four criteria (interval width, uncertainty,
    confidence, signal strength); a prediction passes when at least
    ``min_criteria`` of them hold.
    """

    def __init__(
        self,
        config: Optional[ConformalConfig] = None,
        calibration: Optional[Sequence[tuple[float, float]]] = None,
    ):
        """
        Args:
            config: gate policy constants
            calibration: (predicted, actual) pairs; built-in data when empty
        """
        self.config = config or ConformalConfig()
        self.alpha = self.config.alpha

        pairs = calibration if calibration else self.config.calibration
        self.calibration: tuple[tuple[float, float], ...] = (
            tuple((float(p), float(a)) for p, a in pairs) if pairs else DEFAULT_CALIBRATION
        )
        self._scores: tuple[float, ...] = tuple(conformity_scores(self.calibration))
        self._quantile = conformal_quantile(self._scores, self.alpha)
        self._history: deque[ConformalResult] = deque(maxlen=self.config.history_size)

    @property
    def conformity_scores(self) -> tuple[float, ...]:
        return self._scores

    @property
    def quantile(self) -> float:
        return self._quantile if self._quantile is not None else 0.0

    def evaluate(self, prediction: PredictionResult, uncertainty: UncertaintyResult) -> ConformalResult:
        interval = self.prediction_interval(prediction.confidence, uncertainty)
        width = interval[1] - interval[0]
        criteria = self.criteria(prediction, width, uncertainty)
        passed = count_true(criteria)
        passes_gate = passed >= self.config.min_criteria

        if not passes_gate:
            logger.info(
                "Gate blocked",
                width=round(width, 3),
                uncertainty=round(uncertainty.total, 3),
                confidence=round(prediction.confidence, 3),
                signal=prediction.signal.value,
                criteria_passed=passed,
            )

        result = ConformalResult(
            prediction=prediction,
            prediction_interval=interval,
            passes_gate=passes_gate,
            risk_level=self.risk_level(width, uncertainty),
            conformity_score=self.conformity_score(),
            reliability=max(0.0, 1.0 - width),
            criteria_passed=passed,
        )
        self._history.append(result)
        return result

    def evaluate_batch(
        self,
        predictions: Sequence[PredictionResult],
        uncertainties: Sequence[UncertaintyResult],
    ) -> list[ConformalResult]:
        if len(predictions) != len(uncertainties):
            logger.error(
                "Predictions and uncertainties count mismatch",
                predictions=len(predictions),
                uncertainties=len(uncertainties),
            )
            return []
        return [self.evaluate(p, u) for p, u in zip(predictions, uncertainties)]

    def prediction_interval(self, point_estimate: float, uncertainty: UncertaintyResult) -> Interval:
        """``[p - w, p + w]`` clipped to [0, 1], uncertainty widening ``w``."""
        width = self.quantile + self.config.uncertainty_widening * uncertainty.total
        return (max(0.0, point_estimate - width), min(1.0, point_estimate + width))

    def criteria(
        self,
        prediction: PredictionResult,
        interval_width: float,
        uncertainty: UncertaintyResult,
    ) -> list[bool]:
        cfg = self.config
        signal_strength_ok = (
            prediction.signal != Signal.HOLD or prediction.confidence >= cfg.hold_min_confidence
        )
        return [
            interval_width <= cfg.max_interval_width,
            uncertainty.total <= cfg.max_uncertainty,
            prediction.confidence >= cfg.min_confidence,
            signal_strength_ok,
        ]

    def risk_level(self, interval_width: float, uncertainty: UncertaintyResult) -> RiskLevel:
        risk_score = 0.6 * uncertainty.total + 0.4 * interval_width
        if risk_score <= self.config.low_risk_max:
            return RiskLevel.LOW
        if risk_score <= self.config.moderate_risk_max:
            return RiskLevel.MODERATE
        return RiskLevel.HIGH

    def conformity_score(self) -> float:
        """Root mean square of calibration scores (0.1 without calibration)."""
        if not self._scores:
            return 0.1
        return math.sqrt(mean([s ** 2 for s in self._scores]))

    def statistics(self) -> GateStatistics:
        """Snapshot of recent gate activity."""
        history = list(self._history)
        total = len(history)
        passed = count_true(r.passes_gate for r in history)
        return GateStatistics(
            total_evaluations=total,
            passed_evaluations=passed,
            pass_rate=safe_div(passed, total),
            average_interval_width=mean([r.interval_width for r in history]),
            alpha=self.alpha,
        )

    def reset_statistics(self) -> None:
        self._history.clear()
