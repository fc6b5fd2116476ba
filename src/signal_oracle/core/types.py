"""Value records passed between pipeline stages."""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional

from signal_oracle.core.utils import clamp, sanitize_probability


class Signal(str, Enum):
    """Trading direction emitted by a model or by consensus."""
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"

    @classmethod
    def parse(cls, value: Any) -> "Signal":
        """Case-insensitive parse; anything unrecognised becomes HOLD."""
        if isinstance(value, Signal):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return cls.HOLD


class TradingMode(str, Enum):
    NORMAL = "normal"
    PRECISION = "precision"


class ConsensusStrategy(str, Enum):
    MAJORITY = "majority"
    WEIGHTED = "weighted"
    UNANIMOUS = "unanimous"
    BEST_QUALITY = "best_quality"


class RiskLevel(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"

    @property
    def description(self) -> str:
        return f"{self.value.capitalize()} Risk"

    @property
    def color(self) -> str:
        return {"low": "green", "moderate": "orange", "high": "red"}[self.value]


class ReliabilityLevel(str, Enum):
    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"

    @property
    def description(self) -> str:
        return f"{self.value.capitalize()} Reliability"


Interval = tuple[float, float]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class PredictionResult:
    """One model's opinion for one timeframe."""
    signal: Signal
    confidence: float
    model_id: str
    timeframe: str = "unknown"
    timestamp: datetime = field(default_factory=_utcnow)
    meta: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        # Direct construction gets the same guarantees as create(): finite
        # confidence in [0, 1] and a read-only copy of meta
        object.__setattr__(self, "confidence", sanitize_probability(self.confidence))
        object.__setattr__(self, "meta", MappingProxyType(dict(self.meta)))

    @classmethod
    def create(
        cls,
        signal: Any,
        confidence: Any,
        model_id: str,
        timeframe: str = "unknown",
        timestamp: Optional[datetime] = None,
        meta: Optional[Mapping[str, str]] = None,
    ) -> "PredictionResult":
        """Normalise raw inference output (label parsing, finite [0, 1] confidence)."""
        return cls(
            signal=Signal.parse(signal),
            confidence=sanitize_probability(confidence),
            model_id=model_id,
            timeframe=timeframe,
            timestamp=timestamp or _utcnow(),
            meta=dict(meta or {}),
        )

    @classmethod
    def hold(cls, model_id: str, timeframe: str = "unknown", **meta: str) -> "PredictionResult":
        """Neutral stand-in used for failures and missing data."""
        return cls(
            signal=Signal.HOLD,
            confidence=0.0,
            model_id=model_id,
            timeframe=timeframe,
            meta=dict(meta),
        )

    @property
    def is_fallback(self) -> bool:
        return "error" in self.meta or "reason" in self.meta


@dataclass(frozen=True)
class UncertaintyResult:
    """Quantified doubt about a prediction."""
    epistemic: float
    aleatoric: float
    total: float
    confidence_interval: Interval

    @classmethod
    def combine(cls, epistemic: float, aleatoric: float, interval: Interval) -> "UncertaintyResult":
        """Build a result whose total is the euclidean norm of both components."""
        epistemic = clamp(epistemic, 0.0, 1.0)
        aleatoric = clamp(aleatoric, 0.0, 1.0)
        total = clamp(math.sqrt(epistemic ** 2 + aleatoric ** 2), 0.0, 1.0)
        low = clamp(interval[0], 0.0, 1.0)
        high = clamp(interval[1], low, 1.0)
        return cls(epistemic=epistemic, aleatoric=aleatoric, total=total, confidence_interval=(low, high))

    @classmethod
    def default_high(cls) -> "UncertaintyResult":
        """Conservative value used when no estimate is available."""
        return cls(epistemic=0.5, aleatoric=0.3, total=0.8, confidence_interval=(0.2, 0.8))


@dataclass(frozen=True)
class ReliabilityAssessment:
    is_reliable: bool
    confidence: float
    level: ReliabilityLevel
    uncertainty: UncertaintyResult


@dataclass(frozen=True)
class ConformalResult:
    """Risk-gated verdict for one prediction."""
    prediction: PredictionResult
    prediction_interval: Interval
    passes_gate: bool
    risk_level: RiskLevel
    conformity_score: float
    reliability: float
    criteria_passed: int = 0

    @property
    def interval_width(self) -> float:
        return self.prediction_interval[1] - self.prediction_interval[0]


@dataclass(frozen=True)
class GateStatistics:
    total_evaluations: int
    passed_evaluations: int
    pass_rate: float
    average_interval_width: float
    alpha: float


@dataclass(frozen=True)
class QualifiedPrediction:
    """A prediction admitted into consensus."""
    prediction: PredictionResult
    uncertainty: UncertaintyResult
    quality_score: float
    timeframe_priority: float


@dataclass(frozen=True)
class ConsensusResult:
    """Output of one consensus strategy.

    ``strategy`` is None only for the empty-set fallback. ``agreed`` tells
    whether the strategy's agreement requirement was met; a HOLD produced by
    a failed requirement has ``agreed=False`` and confidence 0.
    """
    signal: Signal
    confidence: float
    rationale: str
    strategy: Optional[ConsensusStrategy] = None
    agreed: bool = False


@dataclass(frozen=True)
class ModeProcessingResult:
    mode: TradingMode
    consensus_signal: Signal
    consensus_confidence: float
    mode_adjusted_confidence: float
    qualified_predictions: tuple[QualifiedPrediction, ...]
    consensus: ConsensusResult
    should_execute: bool

    @property
    def consensus_details(self) -> str:
        return self.consensus.rationale


@dataclass(frozen=True)
class ComponentWeights:
    agreement: float
    uncertainty: float
    quality: float
    timeframe: float


@dataclass(frozen=True)
class ConfidenceComponents:
    agreement_contribution: float
    uncertainty_contribution: float
    quality_contribution: float
    timeframe_contribution: float
    weights: ComponentWeights


@dataclass(frozen=True)
class MetaConfidenceResult:
    final_confidence: float
    agreement_score: float
    uncertainty_penalty: float
    quality_score: float
    timeframe_score: float
    raw_meta_confidence: float
    mode_adjusted_confidence: float
    components: ConfidenceComponents

    @property
    def summary(self) -> str:
        return "\n".join([
            f"Meta-Confidence: {self.final_confidence * 100:.1f}%",
            f"├─ Agreement: {self.agreement_score * 100:.1f}%",
            f"├─ Uncertainty: {(1.0 - self.uncertainty_penalty) * 100:.1f}%",
            f"├─ Quality: {self.quality_score * 100:.1f}%",
            f"└─ Timeframe: {self.timeframe_score * 100:.1f}%",
        ])


@dataclass(frozen=True)
class UIColorCoding:
    primary_color: str
    intensity: float
    should_pulse: bool
    risk_indicator: bool


@dataclass(frozen=True)
class DetailedInfo:
    model_agreement: str
    uncertainty_analysis: str
    risk_assessment: str
    quality_metrics: str
    consensus_details: str
    confidence_breakdown: str


@dataclass(frozen=True)
class UIDisplayResult:
    """Presentation-ready payload; confidence always within the display band."""
    signal: Signal
    display_text: str
    confidence: float
    confidence_display: str
    color_coding: UIColorCoding
    detailed_info: DetailedInfo
    should_show_details: bool
    timestamp: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict:
        """Convert into a JSON-friendly dict."""
        return {
            "signal": self.signal.value,
            "display_text": self.display_text,
            "confidence": self.confidence,
            "confidence_display": self.confidence_display,
            "color": {
                "primary": self.color_coding.primary_color,
                "intensity": self.color_coding.intensity,
                "pulse": self.color_coding.should_pulse,
                "risk_indicator": self.color_coding.risk_indicator,
            },
            "details": {
                "model_agreement": self.detailed_info.model_agreement,
                "uncertainty_analysis": self.detailed_info.uncertainty_analysis,
                "risk_assessment": self.detailed_info.risk_assessment,
                "quality_metrics": self.detailed_info.quality_metrics,
                "consensus_details": self.detailed_info.consensus_details,
                "confidence_breakdown": self.detailed_info.confidence_breakdown,
            },
            "should_show_details": self.should_show_details,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class PipelineResult:
    """Everything produced by one decision cycle."""
    predictions: tuple[PredictionResult, ...]
    uncertainties: tuple[UncertaintyResult, ...]
    conformal_results: tuple[ConformalResult, ...]
    mode_result: ModeProcessingResult
    meta: MetaConfidenceResult
    display: UIDisplayResult
    gate_statistics: GateStatistics
    latency_ms: float = 0.0
