"""Majority-vote reduction of per-timeframe predictions."""

from collections import Counter
from typing import Sequence

from signal_oracle.core.types import PredictionResult, Signal
from signal_oracle.core.utils import mean


def majority_vote(predictions: Sequence[PredictionResult]) -> PredictionResult:
    """Reduce predictions to one result by simple vote.

    The signal with strictly the most votes wins and reports the mean
    confidence of its voters. Ties fall back to HOLD with the mean
    confidence of the HOLD voters (0 when nobody voted HOLD).
    """
    counts = Counter(p.signal for p in predictions)
    members = ",".join(p.model_id for p in predictions)

    winner = Signal.HOLD
    if counts:
        (top_signal, top_count), *rest = counts.most_common()
        if not rest or rest[0][1] < top_count:
            winner = top_signal

    confidences = [p.confidence for p in predictions if p.signal == winner]
    return PredictionResult(
        signal=winner,
        confidence=mean(confidences, default=0.0),
        model_id="ensemble",
        timeframe="ensemble",
        meta={"models": members},
    )
