"""Meta-confidence: one bounded confidence figure from four independent scores."""

from collections import Counter
from typing import Optional, Sequence

import numpy as np

from signal_oracle.core.config import MetaConfig
from signal_oracle.core.log import get_logger
from signal_oracle.core.timeframes import resolve_timeframe, timeframe_priority
from signal_oracle.core.types import (
    ComponentWeights,
    ConfidenceComponents,
    ConformalResult,
    ConsensusStrategy,
    MetaConfidenceResult,
    ModeProcessingResult,
    PredictionResult,
    RiskLevel,
    TradingMode,
    UncertaintyResult,
)
from signal_oracle.core.utils import clamp, mean, sigmoid

logger = get_logger(__name__)

NEUTRAL_SCORE = 0.5


def agreement_score(predictions: Sequence[PredictionResult]) -> float:
    """``0.7 * signal agreement + 0.3 * confidence coherence``; 0.5 below two predictions."""
    if len(predictions) < 2:
        return NEUTRAL_SCORE

    counts = Counter(p.signal for p in predictions)
    signal_agreement = max(counts.values()) / len(predictions)

    confidences = [p.confidence for p in predictions]
    coherence = max(0.0, 1.0 - 2.0 * float(np.std(confidences)))
    return clamp(0.7 * signal_agreement + 0.3 * coherence, 0.0, 1.0)


def uncertainty_penalty(uncertainties: Sequence[UncertaintyResult]) -> float:
    """Mean total uncertainty with extra weight on the epistemic part."""
    if not uncertainties:
        return NEUTRAL_SCORE
    avg_total = mean([u.total for u in uncertainties])
    avg_epistemic = mean([u.epistemic for u in uncertainties])
    return clamp(0.6 * avg_total + 0.4 * avg_epistemic, 0.0, 1.0)


def quality_score(conformal_results: Sequence[ConformalResult]) -> float:
    if not conformal_results:
        return NEUTRAL_SCORE
    n = len(conformal_results)
    avg_reliability = mean([r.reliability for r in conformal_results])
    pass_rate = sum(1 for r in conformal_results if r.passes_gate) / n
    low_risk = sum(1 for r in conformal_results if r.risk_level == RiskLevel.LOW) / n
    return clamp(0.4 * avg_reliability + 0.4 * pass_rate + 0.2 * low_risk, 0.0, 1.0)


def timeframe_score(predictions: Sequence[PredictionResult], expected_timeframes: int = 3) -> float:
    """Timeframe diversity plus priority-weighted mean confidence."""
    if not predictions:
        return NEUTRAL_SCORE

    labels = [resolve_timeframe(p.timeframe, p.model_id) for p in predictions]
    diversity = len(set(labels)) / expected_timeframes

    weights = [timeframe_priority(label) for label in labels]
    total_weight = sum(weights)
    if total_weight > 0:
        weighted_confidence = sum(w * p.confidence for w, p in zip(weights, predictions)) / total_weight
    else:
        weighted_confidence = NEUTRAL_SCORE

    return clamp(0.3 * diversity + 0.7 * weighted_confidence, 0.0, 1.0)


class MetaConfidenceCalculator:
    """Blends agreement, uncertainty, quality and timeframe scores."""

    def __init__(self, config: Optional[MetaConfig] = None):
        """
        Args:
            config: weights, target band and mode damping
        """
        self.config = config or MetaConfig()

    @property
    def weights(self) -> ComponentWeights:
        return ComponentWeights(
            agreement=self.config.agreement_weight,
            uncertainty=self.config.uncertainty_weight,
            quality=self.config.quality_weight,
            timeframe=self.config.timeframe_weight,
        )

    def calculate(
        self,
        predictions: Sequence[PredictionResult],
        uncertainties: Sequence[UncertaintyResult],
        conformal_results: Sequence[ConformalResult],
        mode_result: ModeProcessingResult,
    ) -> MetaConfidenceResult:
        """
        Compute the final meta-confidence.

        Returns:
            MetaConfidenceResult with final confidence inside the target band
        """
        w = self.weights
        agreement = agreement_score(predictions)
        penalty = uncertainty_penalty(uncertainties)
        quality = quality_score(conformal_results)
        timeframe = timeframe_score(predictions, self.config.expected_timeframes)

        components = ConfidenceComponents(
            agreement_contribution=w.agreement * agreement,
            uncertainty_contribution=w.uncertainty * (1.0 - penalty),
            quality_contribution=w.quality * quality,
            timeframe_contribution=w.timeframe * timeframe,
            weights=w,
        )
        raw = (
            components.agreement_contribution
            + components.uncertainty_contribution
            + components.quality_contribution
            + components.timeframe_contribution
        )

        adjusted = self.apply_mode_adjustments(raw, mode_result)
        final = self.map_to_target_range(adjusted)

        logger.debug(
            "Meta confidence",
            agreement=round(agreement, 4),
            uncertainty_penalty=round(penalty, 4),
            quality=round(quality, 4),
            timeframe=round(timeframe, 4),
            raw=round(raw, 4),
            final=round(final, 4),
        )

        return MetaConfidenceResult(
            final_confidence=final,
            agreement_score=agreement,
            uncertainty_penalty=penalty,
            quality_score=quality,
            timeframe_score=timeframe,
            raw_meta_confidence=raw,
            mode_adjusted_confidence=adjusted,
            components=components,
        )

    def apply_mode_adjustments(self, raw_confidence: float, mode_result: ModeProcessingResult) -> float:
        cfg = self.config
        adjusted = raw_confidence

        if mode_result.mode == TradingMode.PRECISION:
            adjusted *= cfg.precision_scaling
            qualified = len(mode_result.qualified_predictions)
            if qualified < cfg.expected_timeframes:
                adjusted *= 1.0 - 0.1 * (cfg.expected_timeframes - qualified)
        else:
            adjusted *= cfg.normal_scaling

        consensus = mode_result.consensus
        if consensus.agreed and consensus.strategy == ConsensusStrategy.UNANIMOUS:
            adjusted *= cfg.unanimous_bonus
        elif consensus.agreed and consensus.strategy == ConsensusStrategy.MAJORITY:
            adjusted *= cfg.majority_penalty

        return clamp(adjusted, 0.0, 1.0)

    def map_to_target_range(self, confidence: float) -> float:
        """Logistic squash around 0.5, then linear remap into the target band."""
        low, high = self.config.target_low, self.config.target_high
        squashed = sigmoid((confidence - 0.5) * self.config.sigmoid_steepness)
        return clamp(low + squashed * (high - low), low, high)
