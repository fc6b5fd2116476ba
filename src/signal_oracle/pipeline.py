"""Decision pipeline: ensemble -> uncertainty -> gate -> mode -> meta -> display."""

import time
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Sequence

from signal_oracle.conformal.gate import ConformalGate
from signal_oracle.core.config import Config
from signal_oracle.core.log import MetricsLogger, get_logger
from signal_oracle.core.types import (
    PipelineResult,
    PredictionResult,
    TradingMode,
    UncertaintyResult,
)
from signal_oracle.display.adapter import UIAdapter
from signal_oracle.ensemble.aggregator import ModelEnsemble
from signal_oracle.ensemble.inference import InferenceFn
from signal_oracle.meta.confidence import MetaConfidenceCalculator
from signal_oracle.modes.engine import ModeEngine
from signal_oracle.throttle import CycleThrottle
from signal_oracle.uncertainty.estimator import UncertaintyEngine

logger = get_logger(__name__)


class SignalPipeline:
    """One decision per cycle from per-timeframe model outputs."""

    def __init__(
        self,
        config: Config,
        infer: InferenceFn,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Args:
            config: full configuration
            infer: external inference function
            clock: time source for the cycle throttle (monotonic by default)
        """
        self.config = config

        self.ensemble = ModelEnsemble(
            infer=infer,
            timeframes=config.ensemble.timeframes,
            min_candles=config.ensemble.min_candles,
            parallel=config.ensemble.parallel,
            max_workers=config.ensemble.max_workers,
        )
        self.uncertainty = UncertaintyEngine(config.uncertainty)
        self.gate = ConformalGate(config.conformal)
        self.mode_engine = ModeEngine(config.modes)
        self.meta = MetaConfidenceCalculator(config.meta)
        self.display = UIAdapter(config.display, expected_timeframes=config.meta.expected_timeframes)

        if clock is None:
            self.throttle = CycleThrottle(config.pipeline.min_cycle_interval_s)
        else:
            self.throttle = CycleThrottle(config.pipeline.min_cycle_interval_s, clock=clock)

        self.metrics: Optional[MetricsLogger] = None
        if config.logging.metrics_file:
            self.metrics = MetricsLogger(Path(config.logging.metrics_file))

    async def run_cycle(
        self,
        windows: Mapping[str, Sequence[Any]],
        mode: Optional[TradingMode] = None,
        uncertainties: Optional[Sequence[UncertaintyResult]] = None,
    ) -> Optional[PipelineResult]:
        """
        Run one full decision cycle.

        Args:
            windows: candle windows keyed by timeframe
            mode: trading mode (configured mode when omitted)
            uncertainties: per-prediction uncertainties supplied by the caller

        Returns:
            PipelineResult, or None when the cycle was throttled
        """
        if not self.throttle.try_acquire():
            logger.debug("Cycle throttled", retry_in_s=round(self.throttle.seconds_until_ready(), 3))
            return None

        start = time.perf_counter()
        predictions = await self.ensemble.predict_all(windows)
        result = self.evaluate(predictions, uncertainties=uncertainties, mode=mode, started_at=start)
        return result

    def evaluate(
        self,
        predictions: Sequence[PredictionResult],
        uncertainties: Optional[Sequence[UncertaintyResult]] = None,
        mode: Optional[TradingMode] = None,
        started_at: Optional[float] = None,
    ) -> PipelineResult:
        """Post-inference stages for already computed predictions."""
        start = started_at if started_at is not None else time.perf_counter()
        mode = TradingMode(mode or self.config.pipeline.mode)

        if uncertainties is None:
            uncertainties = self.uncertainty.per_prediction(predictions)

        conformal_results = self.gate.evaluate_batch(predictions, uncertainties)
        mode_result = self.mode_engine.process(predictions, uncertainties, mode)
        meta = self.meta.calculate(predictions, uncertainties, conformal_results, mode_result)
        display = self.display.adapt(meta, mode_result, conformal_results)

        latency_ms = (time.perf_counter() - start) * 1000.0

        result = PipelineResult(
            predictions=tuple(predictions),
            uncertainties=tuple(uncertainties),
            conformal_results=tuple(conformal_results),
            mode_result=mode_result,
            meta=meta,
            display=display,
            gate_statistics=self.gate.statistics(),
            latency_ms=latency_ms,
        )
        self._log_cycle(result)
        return result

    def _log_cycle(self, result: PipelineResult) -> None:
        display = result.display
        passed = sum(1 for r in result.conformal_results if r.passes_gate)

        logger.info(
            "Cycle complete",
            mode=result.mode_result.mode.value,
            signal=display.signal.value,
            confidence=round(display.confidence, 4),
            consensus=result.mode_result.consensus_signal.value,
            qualified=len(result.mode_result.qualified_predictions),
            gates_passed=passed,
            should_execute=result.mode_result.should_execute,
            latency_ms=round(result.latency_ms, 2),
        )

        if self.metrics:
            self.metrics.log({
                "ts": display.timestamp.isoformat(),
                "mode": result.mode_result.mode.value,
                "signal": display.signal.value,
                "confidence": display.confidence,
                "consensus_signal": result.mode_result.consensus_signal.value,
                "consensus_confidence": result.mode_result.consensus_confidence,
                "mode_adjusted_confidence": result.mode_result.mode_adjusted_confidence,
                "meta_confidence": result.meta.final_confidence,
                "qualified": len(result.mode_result.qualified_predictions),
                "gates_passed": passed,
                "gate_pass_rate": result.gate_statistics.pass_rate,
                "latency_ms": result.latency_ms,
                "predictions": [
                    {
                        "timeframe": p.timeframe,
                        "signal": p.signal.value,
                        "confidence": p.confidence,
                        **p.meta,
                    }
                    for p in result.predictions
                ],
            })

    def close(self) -> None:
        self.ensemble.close()
        if self.metrics:
            self.metrics.close()
