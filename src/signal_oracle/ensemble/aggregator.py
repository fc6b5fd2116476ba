"""Per-timeframe model ensemble."""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Mapping, Optional, Sequence

from signal_oracle.core.errors import InsufficientDataError
from signal_oracle.core.log import get_logger
from signal_oracle.core.types import PredictionResult
from signal_oracle.ensemble.inference import InferenceFn
from signal_oracle.ensemble.voting import majority_vote

logger = get_logger(__name__)


class ModelEnsemble:
    """Runs the inference collaborator once per configured timeframe."""

    def __init__(
        self,
        infer: InferenceFn,
        timeframes: Sequence[str],
        min_candles: int = 50,
        parallel: bool = True,
        max_workers: Optional[int] = None,
    ):
        """
        Args:
            infer: external inference function
            timeframes: ordered timeframes to evaluate
            min_candles: minimum window length per timeframe
            parallel: run timeframes concurrently in a thread pool
            max_workers: pool size (defaults to one thread per timeframe)
        """
        self.infer = infer
        self.timeframes = list(timeframes)
        self.min_candles = min_candles
        self.parallel = parallel
        self.max_workers = max_workers or max(len(self.timeframes), 1)
        self.executor = ThreadPoolExecutor(max_workers=self.max_workers) if parallel else None

    @staticmethod
    def model_id(timeframe: str) -> str:
        return f"{timeframe}_model"

    def _check_window(self, timeframe: str, candles: Optional[Sequence[Any]]) -> None:
        available = len(candles) if candles is not None else 0
        if available < self.min_candles:
            raise InsufficientDataError(timeframe, available, self.min_candles)

    def predict_timeframe(self, timeframe: str, candles: Optional[Sequence[Any]]) -> PredictionResult:
        """Predict one timeframe; never raises.

        Short windows give a HOLD stand-in tagged ``reason=insufficient_data``,
        inference failures a HOLD stand-in tagged ``error=eval_failed``.
        """
        model_id = self.model_id(timeframe)
        try:
            self._check_window(timeframe, candles)
        except InsufficientDataError as exc:
            logger.info(
                "Not enough candles",
                timeframe=timeframe,
                available=exc.available,
                required=exc.required,
            )
            return PredictionResult.hold(model_id, timeframe, reason="insufficient_data")

        try:
            signal, confidence = self.infer(timeframe, candles)
        except Exception as exc:
            logger.error("Prediction failed", timeframe=timeframe, error=str(exc), exc_type=type(exc).__name__)
            return PredictionResult.hold(model_id, timeframe, error="eval_failed")

        return PredictionResult.create(
            signal=signal,
            confidence=confidence,
            model_id=model_id,
            timeframe=timeframe,
        )

    async def predict_all(self, windows: Mapping[str, Sequence[Any]]) -> list[PredictionResult]:
        """Predict every configured timeframe; results follow configured order."""
        if self.parallel:
            return await self._predict_parallel(windows)
        return [self.predict_timeframe(tf, windows.get(tf)) for tf in self.timeframes]

    async def predict_ensemble(self, windows: Mapping[str, Sequence[Any]]) -> PredictionResult:
        """Cross-timeframe majority vote (precision evaluation)."""
        predictions = await self.predict_all(windows)
        return majority_vote(predictions)

    async def _predict_parallel(self, windows: Mapping[str, Sequence[Any]]) -> list[PredictionResult]:
        loop = asyncio.get_running_loop()

        futures = [
            loop.run_in_executor(
                self.executor,
                lambda tf=tf: self.predict_timeframe(tf, windows.get(tf)),
            )
            for tf in self.timeframes
        ]

        # All timeframes are joined before anything is returned
        predictions = await asyncio.gather(*futures)
        return list(predictions)

    def close(self):
        if self.executor:
            self.executor.shutdown(wait=False)
            self.executor = None
