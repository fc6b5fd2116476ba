"""Signal Oracle: multi-timeframe AI signal decision pipeline."""

__version__ = "0.1.0"
