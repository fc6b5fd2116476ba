"""Per-timeframe inference and ensemble voting."""

from signal_oracle.ensemble.aggregator import ModelEnsemble
from signal_oracle.ensemble.inference import InferenceFn, StaticInference
from signal_oracle.ensemble.voting import majority_vote

__all__ = ["InferenceFn", "ModelEnsemble", "StaticInference", "majority_vote"]
