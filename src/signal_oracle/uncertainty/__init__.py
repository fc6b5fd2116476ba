"""Uncertainty estimation."""

from signal_oracle.uncertainty.estimator import DeepEnsemble, MCDropout, UncertaintyEngine

__all__ = ["DeepEnsemble", "MCDropout", "UncertaintyEngine"]
