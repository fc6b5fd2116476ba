"""Split-conformal calibration: conformity scores and quantile selection."""

import math
from typing import Optional, Sequence

# (predicted, actual) pairs used when no calibration set is supplied
DEFAULT_CALIBRATION: tuple[tuple[float, float], ...] = (
    (0.55, 0.52), (0.60, 0.58), (0.65, 0.62), (0.70, 0.68),
    (0.75, 0.73), (0.80, 0.77), (0.85, 0.82), (0.90, 0.88),
    (0.58, 0.55), (0.62, 0.60), (0.67, 0.64), (0.72, 0.70),
    (0.77, 0.75), (0.82, 0.79), (0.87, 0.84), (0.92, 0.89),
)


def conformity_scores(calibration: Sequence[tuple[float, float]]) -> list[float]:
    """Absolute errors ``|predicted - actual|``, sorted ascending."""
    return sorted(abs(predicted - actual) for predicted, actual in calibration)


def quantile_index(n: int, alpha: float) -> int:
    """Index of the ``ceil((n + 1)(1 - alpha)) - 1`` order statistic.

    Clamped to the last valid index (and to 0 from below) so it is always a
    valid index into ``n >= 1`` sorted scores.
    """
    if n <= 0:
        raise ValueError("quantile_index requires at least one score")
    index = int(math.ceil((n + 1) * (1.0 - alpha))) - 1
    return max(0, min(index, n - 1))


def conformal_quantile(sorted_scores: Sequence[float], alpha: float) -> Optional[float]:
    """Calibrated quantile of sorted conformity scores, None when there are none."""
    if not sorted_scores:
        return None
    return sorted_scores[quantile_index(len(sorted_scores), alpha)]
