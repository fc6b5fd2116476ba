"""Display mapping of the final decision."""

from signal_oracle.display.adapter import UIAdapter, overall_risk

__all__ = ["UIAdapter", "overall_risk"]
