"""Consensus strategies over qualified predictions.

Every strategy is a pure function of the qualified predictions (sorted by
quality, best first) and the required majority ratio. Vote ties resolve to
the signal that appears first in that order.
"""

from collections import Counter
from typing import Callable, Optional, Sequence

from signal_oracle.core.types import ConsensusResult, ConsensusStrategy, QualifiedPrediction, Signal
from signal_oracle.core.utils import mean


def no_consensus(rationale: str, strategy: Optional[ConsensusStrategy] = None) -> ConsensusResult:
    return ConsensusResult(signal=Signal.HOLD, confidence=0.0, rationale=rationale, strategy=strategy)


def majority_consensus(
    predictions: Sequence[QualifiedPrediction],
    required_ratio: float,
) -> ConsensusResult:
    counts = Counter(q.prediction.signal for q in predictions)
    if not counts:
        return no_consensus("No clear majority", ConsensusStrategy.MAJORITY)

    majority_signal, majority_count = counts.most_common(1)[0]
    ratio = majority_count / len(predictions)

    if ratio < required_ratio:
        return no_consensus(
            f"Insufficient majority: {ratio * 100:.1f}% < {required_ratio * 100:.1f}%",
            ConsensusStrategy.MAJORITY,
        )

    confidence = mean([q.prediction.confidence for q in predictions if q.prediction.signal == majority_signal])
    return ConsensusResult(
        signal=majority_signal,
        confidence=confidence * ratio,
        rationale=f"Majority consensus: {majority_count}/{len(predictions)} models agree",
        strategy=ConsensusStrategy.MAJORITY,
        agreed=True,
    )


def weighted_consensus(
    predictions: Sequence[QualifiedPrediction],
    required_ratio: float,
) -> ConsensusResult:
    """Votes weighted by ``quality_score * timeframe_priority``."""
    weights: dict[Signal, float] = {}
    confidences: dict[Signal, list[float]] = {}
    for q in predictions:
        signal = q.prediction.signal
        weights[signal] = weights.get(signal, 0.0) + q.quality_score * q.timeframe_priority
        confidences.setdefault(signal, []).append(q.prediction.confidence)

    if not weights:
        return no_consensus("No weighted consensus", ConsensusStrategy.WEIGHTED)

    top_signal = max(weights, key=weights.get)
    total_weight = sum(weights.values())
    share = weights[top_signal] / total_weight if total_weight > 0 else 0.0

    if share < required_ratio:
        return no_consensus(
            f"Insufficient weighted consensus: {share * 100:.1f}%",
            ConsensusStrategy.WEIGHTED,
        )

    return ConsensusResult(
        signal=top_signal,
        confidence=mean(confidences[top_signal]) * share,
        rationale=f"Weighted consensus: {share * 100:.1f}% weight",
        strategy=ConsensusStrategy.WEIGHTED,
        agreed=True,
    )


def unanimous_consensus(
    predictions: Sequence[QualifiedPrediction],
    required_ratio: float,
) -> ConsensusResult:
    signals = {q.prediction.signal for q in predictions}
    if len(signals) != 1:
        return no_consensus(
            f"No unanimous agreement: {len(signals)} different signals",
            ConsensusStrategy.UNANIMOUS,
        )

    (signal,) = signals
    return ConsensusResult(
        signal=signal,
        confidence=mean([q.prediction.confidence for q in predictions]),
        rationale=f"Unanimous agreement: all {len(predictions)} models agree",
        strategy=ConsensusStrategy.UNANIMOUS,
        agreed=True,
    )


def best_quality_consensus(
    predictions: Sequence[QualifiedPrediction],
    required_ratio: float,
) -> ConsensusResult:
    if not predictions:
        return no_consensus("No quality predictions", ConsensusStrategy.BEST_QUALITY)

    best = max(predictions, key=lambda q: q.quality_score)
    return ConsensusResult(
        signal=best.prediction.signal,
        confidence=best.prediction.confidence,
        rationale=f"Best quality model: score {best.quality_score:.3f}",
        strategy=ConsensusStrategy.BEST_QUALITY,
        agreed=True,
    )


STRATEGIES: dict[ConsensusStrategy, Callable[[Sequence[QualifiedPrediction], float], ConsensusResult]] = {
    ConsensusStrategy.MAJORITY: majority_consensus,
    ConsensusStrategy.WEIGHTED: weighted_consensus,
    ConsensusStrategy.UNANIMOUS: unanimous_consensus,
    ConsensusStrategy.BEST_QUALITY: best_quality_consensus,
}
