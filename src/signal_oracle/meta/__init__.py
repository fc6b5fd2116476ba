"""Meta-confidence scoring."""

from signal_oracle.meta.confidence import (
    MetaConfidenceCalculator,
    agreement_score,
    quality_score,
    timeframe_score,
    uncertainty_penalty,
)

__all__ = [
    "MetaConfidenceCalculator",
    "agreement_score",
    "quality_score",
    "timeframe_score",
    "uncertainty_penalty",
]
