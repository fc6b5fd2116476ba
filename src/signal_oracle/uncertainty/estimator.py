"""Uncertainty quantification over per-timeframe predictions."""

from typing import Optional, Sequence

import numpy as np

from signal_oracle.core.config import UncertaintyConfig
from signal_oracle.core.types import (
    PredictionResult,
    ReliabilityAssessment,
    ReliabilityLevel,
    TradingMode,
    UncertaintyResult,
)


METHODS = ("deep_ensemble", "mc_dropout", "ensemble")


class DeepEnsemble:
    """Uncertainty from disagreement between independently trained models."""

    def calculate(self, predictions: Sequence[PredictionResult]) -> UncertaintyResult:
        """
        Epistemic part is the spread of model confidences, aleatoric part the
        distance of the most confident model from certainty.
        """
        if len(predictions) < 2:
            # A lone model cannot disagree with anyone
            return UncertaintyResult(epistemic=0.5, aleatoric=0.3, total=0.8, confidence_interval=(0.3, 0.7))

        confidences = np.array([p.confidence for p in predictions], dtype=float)
        mean_confidence = float(confidences.mean())
        epistemic = float(confidences.std())
        aleatoric = 1.0 - float(confidences.max())
        total = float(np.hypot(epistemic, aleatoric))

        half_width = total * 0.5
        return UncertaintyResult.combine(
            epistemic,
            aleatoric,
            (mean_confidence - half_width, mean_confidence + half_width),
        )


class MCDropout:
    """Monte Carlo dropout approximation around a single prediction."""

    def __init__(self, dropout_rate: float = 0.2, num_samples: int = 10, seed: Optional[int] = None):
        self.dropout_rate = dropout_rate
        self.num_samples = num_samples
        self.seed = seed

    def estimate(self, prediction: PredictionResult) -> UncertaintyResult:
        # Fresh generator per call keeps estimates reproducible for a given seed
        rng = np.random.default_rng(self.seed)
        noise = rng.uniform(-self.dropout_rate, self.dropout_rate, size=self.num_samples)
        samples = np.clip(prediction.confidence + noise, 0.0, 1.0)

        mean = float(samples.mean())
        epistemic = float(samples.std())
        aleatoric = self.dropout_rate * 0.5
        total = float(np.hypot(epistemic, aleatoric))

        return UncertaintyResult.combine(epistemic, aleatoric, (mean - total, mean + total))


class UncertaintyEngine:
    """Combines deep-ensemble and MC-dropout estimates."""

    def __init__(self, config: Optional[UncertaintyConfig] = None):
        """
        Args:
            config: estimation settings (defaults when omitted)
        """
        self.config = config or UncertaintyConfig()
        self.deep_ensemble = DeepEnsemble()
        self.mc_dropout = MCDropout(
            dropout_rate=self.config.dropout_rate,
            num_samples=self.config.mc_samples,
            seed=self.config.seed,
        )

    def calculate(
        self,
        predictions: Sequence[PredictionResult],
        method: Optional[str] = None,
    ) -> UncertaintyResult:
        """Uncertainty of a prediction set; the first prediction is the primary one."""
        method = method or self.config.method
        if method not in METHODS:
            raise ValueError(f"Unknown uncertainty method: {method}")

        if method == "deep_ensemble":
            return self.deep_ensemble.calculate(predictions)

        if method == "mc_dropout":
            if not predictions:
                return UncertaintyResult(epistemic=0.4, aleatoric=0.3, total=0.5, confidence_interval=(0.2, 0.8))
            return self.mc_dropout.estimate(predictions[0])

        ensemble = self.deep_ensemble.calculate(predictions)
        if not predictions:
            return ensemble
        mc = self.mc_dropout.estimate(predictions[0])

        epistemic = 0.7 * ensemble.epistemic + 0.3 * mc.epistemic
        aleatoric = 0.6 * ensemble.aleatoric + 0.4 * mc.aleatoric
        # Wider of the two intervals
        low = min(ensemble.confidence_interval[0], mc.confidence_interval[0])
        high = max(ensemble.confidence_interval[1], mc.confidence_interval[1])
        return UncertaintyResult.combine(epistemic, aleatoric, (low, high))

    def per_prediction(self, predictions: Sequence[PredictionResult]) -> list[UncertaintyResult]:
        """One estimate per prediction, each taken against its peers."""
        results = []
        for index, prediction in enumerate(predictions):
            if prediction.is_fallback:
                results.append(UncertaintyResult.default_high())
                continue
            peers = [p for i, p in enumerate(predictions) if i != index and not p.is_fallback]
            results.append(self.calculate([prediction, *peers]))
        return results

    def assess_reliability(
        self,
        predictions: Sequence[PredictionResult],
        mode: TradingMode = TradingMode.NORMAL,
    ) -> ReliabilityAssessment:
        uncertainty = self.calculate(predictions)
        if TradingMode(mode) == TradingMode.PRECISION:
            threshold = self.config.precision_threshold
        else:
            threshold = self.config.normal_threshold

        if uncertainty.total <= 0.15:
            level = ReliabilityLevel.HIGH
        elif uncertainty.total <= 0.3:
            level = ReliabilityLevel.MODERATE
        else:
            level = ReliabilityLevel.LOW

        return ReliabilityAssessment(
            is_reliable=uncertainty.total <= threshold,
            confidence=1.0 - uncertainty.total,
            level=level,
            uncertainty=uncertainty,
        )
