"""Mode engine: mode-specific qualification and consensus (normal vs precision)."""

from typing import Optional, Sequence

from signal_oracle.core.config import ModeConfig, ModesConfig
from signal_oracle.core.log import get_logger
from signal_oracle.core.timeframes import resolve_timeframe, timeframe_priority
from signal_oracle.core.types import (
    ConsensusResult,
    ConsensusStrategy,
    ModeProcessingResult,
    PredictionResult,
    QualifiedPrediction,
    Signal,
    TradingMode,
    UncertaintyResult,
)
from signal_oracle.core.utils import clamp
from signal_oracle.modes.consensus import STRATEGIES, no_consensus

logger = get_logger(__name__)

ADJUSTED_CONFIDENCE_RANGE = (0.5, 0.9)


def quality_score(prediction: PredictionResult, uncertainty: UncertaintyResult) -> float:
    return 0.7 * prediction.confidence + 0.3 * (1.0 - uncertainty.total)


class ModeEngine:
    """Applies mode thresholds and one consensus strategy to per-timeframe predictions."""

    def __init__(self, modes: Optional[ModesConfig] = None):
        """
        Args:
            modes: per-mode thresholds (built-in table when omitted)
        """
        self.modes = modes or ModesConfig()

    def config_for(self, mode: TradingMode) -> ModeConfig:
        return self.modes.for_mode(mode)

    def process(
        self,
        predictions: Sequence[PredictionResult],
        uncertainties: Sequence[UncertaintyResult],
        mode: TradingMode,
        strategy: Optional[ConsensusStrategy] = None,
    ) -> ModeProcessingResult:
        """
        Process multi-timeframe predictions for one mode.

        Args:
            predictions: one prediction per timeframe
            uncertainties: matching uncertainties (missing entries get the
                default high uncertainty)
            mode: trading mode
            strategy: overrides the mode's consensus strategy

        Returns:
            ModeProcessingResult
        """
        config = self.config_for(mode)
        qualified = self.qualify(predictions, uncertainties, config)
        consensus = self.consensus(qualified, config, strategy)
        adjusted = self.mode_adjusted_confidence(consensus, predictions, config)
        should_execute = self.should_execute(consensus.signal, adjusted, config)

        logger.debug(
            "Mode processed",
            mode=config.mode.value,
            qualified=len(qualified),
            signal=consensus.signal.value,
            consensus_confidence=round(consensus.confidence, 4),
            adjusted_confidence=round(adjusted, 4),
            should_execute=should_execute,
        )

        return ModeProcessingResult(
            mode=config.mode,
            consensus_signal=consensus.signal,
            consensus_confidence=consensus.confidence,
            mode_adjusted_confidence=adjusted,
            qualified_predictions=tuple(qualified),
            consensus=consensus,
            should_execute=should_execute,
        )

    def qualify(
        self,
        predictions: Sequence[PredictionResult],
        uncertainties: Sequence[UncertaintyResult],
        config: ModeConfig,
    ) -> list[QualifiedPrediction]:
        """Predictions passing the mode thresholds, best quality first."""
        if len(uncertainties) < len(predictions):
            logger.warning(
                "Missing uncertainties, using default high uncertainty",
                predictions=len(predictions),
                uncertainties=len(uncertainties),
            )

        qualified = []
        for index, prediction in enumerate(predictions):
            if index < len(uncertainties):
                uncertainty = uncertainties[index]
            else:
                uncertainty = UncertaintyResult.default_high()

            if prediction.confidence < config.min_confidence:
                continue
            if uncertainty.total > config.max_uncertainty:
                continue
            score = quality_score(prediction, uncertainty)
            if score < config.min_quality:
                continue

            qualified.append(
                QualifiedPrediction(
                    prediction=prediction,
                    uncertainty=uncertainty,
                    quality_score=score,
                    timeframe_priority=timeframe_priority(resolve_timeframe(prediction.timeframe, prediction.model_id)),
                )
            )

        # sorted() is stable, equal scores keep timeframe order
        return sorted(qualified, key=lambda q: q.quality_score, reverse=True)

    def consensus(
        self,
        qualified: Sequence[QualifiedPrediction],
        config: ModeConfig,
        strategy: Optional[ConsensusStrategy] = None,
    ) -> ConsensusResult:
        if not qualified:
            return no_consensus("No qualified predictions available")
        strategy = ConsensusStrategy(strategy or config.consensus_strategy)
        return STRATEGIES[strategy](qualified, config.required_majority_ratio)

    def mode_adjusted_confidence(
        self,
        consensus: ConsensusResult,
        all_predictions: Sequence[PredictionResult],
        config: ModeConfig,
    ) -> float:
        adjusted = consensus.confidence

        if config.mode == TradingMode.PRECISION:
            distinct = len({p.signal for p in all_predictions})
            if distinct > 1:
                penalty = min(0.2, 0.1 * (distinct - 1))
                adjusted *= 1.0 - penalty

        adjusted *= config.conservative_scaling
        return clamp(adjusted, *ADJUSTED_CONFIDENCE_RANGE)

    @staticmethod
    def should_execute(signal: Signal, confidence: float, config: ModeConfig) -> bool:
        if signal == Signal.HOLD:
            return False
        return confidence >= config.execution_threshold
