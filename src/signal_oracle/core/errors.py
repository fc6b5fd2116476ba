"""Exceptions raised inside the decision pipeline."""


class OracleError(Exception):
    """Base class for pipeline errors."""


class InferenceError(OracleError):
    """The external inference collaborator failed for one timeframe."""

    def __init__(self, timeframe: str, message: str = "inference failed"):
        super().__init__(f"{timeframe}: {message}")
        self.timeframe = timeframe


class InsufficientDataError(OracleError):
    """Candle window is shorter than the model requires."""

    def __init__(self, timeframe: str, available: int, required: int):
        super().__init__(f"{timeframe}: {available}/{required} candles")
        self.timeframe = timeframe
        self.available = available
        self.required = required


class ConfigError(OracleError):
    """Configuration file is unreadable or holds invalid values."""
