"""Contract of the external inference runtime."""

from typing import Any, Mapping, Protocol, Sequence

from signal_oracle.core.errors import InferenceError


class InferenceFn(Protocol):
    """``infer(timeframe, candles) -> (signal, confidence)``; failures raise."""

    def __call__(self, timeframe: str, candles: Sequence[Any]) -> tuple[str, float]:
        ...


class StaticInference:
    """Replays fixed per-timeframe outputs.

    Used by the CLI to push recorded model outputs through the pipeline
    without a model runtime. Timeframes without an entry raise
    ``InferenceError`` like a failed model would.
    """

    def __init__(self, outputs: Mapping[str, tuple[str, float]]):
        self.outputs = dict(outputs)

    def __call__(self, timeframe: str, candles: Sequence[Any]) -> tuple[str, float]:
        try:
            return self.outputs[timeframe]
        except KeyError:
            raise InferenceError(timeframe, "no recorded output") from None
