"""Conformal prediction gate."""

from signal_oracle.conformal.calibration import (
    DEFAULT_CALIBRATION,
    conformal_quantile,
    conformity_scores,
    quantile_index,
)
from signal_oracle.conformal.gate import ConformalGate

__all__ = [
    "ConformalGate",
    "DEFAULT_CALIBRATION",
    "conformal_quantile",
    "conformity_scores",
    "quantile_index",
]
