"""Trading modes and consensus strategies."""

from signal_oracle.modes.consensus import STRATEGIES
from signal_oracle.modes.engine import ModeEngine, quality_score

__all__ = ["ModeEngine", "STRATEGIES", "quality_score"]
