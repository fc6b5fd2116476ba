"""Configuration loading and validation."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from signal_oracle.core.errors import ConfigError
from signal_oracle.core.timeframes import timeframe_to_minutes
from signal_oracle.core.types import ConsensusStrategy, TradingMode


class PipelineConfig(BaseModel):
    """Decision cycle settings."""
    mode: TradingMode = TradingMode.NORMAL
    min_cycle_interval_s: float = Field(default=0.5, ge=0.0)


class EnsembleConfig(BaseModel):
    """Per-timeframe inference settings."""
    timeframes: list[str] = Field(default_factory=lambda: ["5m", "1h", "4h"])
    min_candles: int = Field(default=50, ge=1)
    parallel: bool = True
    max_workers: Optional[int] = None

    @field_validator("timeframes")
    @classmethod
    def _check_timeframes(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("at least one timeframe is required")
        normalized = [tf.strip().lower() for tf in value]
        for tf in normalized:
            timeframe_to_minutes(tf)
        if len(set(normalized)) != len(normalized):
            raise ValueError(f"duplicate timeframes: {value}")
        return normalized


class UncertaintyConfig(BaseModel):
    """Uncertainty estimation settings."""
    method: str = Field(default="ensemble", pattern="^(ensemble|deep_ensemble|mc_dropout)$")
    dropout_rate: float = Field(default=0.2, ge=0.0, le=1.0)
    mc_samples: int = Field(default=10, ge=1)
    seed: Optional[int] = 7
    normal_threshold: float = 0.3
    precision_threshold: float = 0.2


class ConformalConfig(BaseModel):
    """Conformal gate policy constants."""
    alpha: float = Field(default=0.1, gt=0.0, lt=1.0)
    max_interval_width: float = 0.4
    max_uncertainty: float = 0.35
    min_confidence: float = 0.55
    hold_min_confidence: float = 0.6
    min_criteria: int = Field(default=3, ge=0, le=4)
    uncertainty_widening: float = 0.5
    low_risk_max: float = 0.2
    moderate_risk_max: float = 0.4
    history_size: int = Field(default=500, ge=1)
    calibration: Optional[list[tuple[float, float]]] = None


class ModeConfig(BaseModel):
    """Thresholds and consensus rule for one trading mode."""
    mode: TradingMode
    min_confidence: float
    max_uncertainty: float
    min_quality: float
    consensus_strategy: ConsensusStrategy
    required_majority_ratio: float
    execution_threshold: float
    conservative_scaling: float

    @classmethod
    def normal(cls) -> "ModeConfig":
        return cls(
            mode=TradingMode.NORMAL,
            min_confidence=0.55,
            max_uncertainty=0.35,
            min_quality=0.6,
            consensus_strategy=ConsensusStrategy.WEIGHTED,
            required_majority_ratio=0.6,
            execution_threshold=0.65,
            conservative_scaling=0.9,
        )

    @classmethod
    def precision(cls) -> "ModeConfig":
        return cls(
            mode=TradingMode.PRECISION,
            min_confidence=0.7,
            max_uncertainty=0.25,
            min_quality=0.75,
            consensus_strategy=ConsensusStrategy.UNANIMOUS,
            required_majority_ratio=0.8,
            execution_threshold=0.8,
            conservative_scaling=0.85,
        )


class ModesConfig(BaseModel):
    normal: ModeConfig = Field(default_factory=ModeConfig.normal)
    precision: ModeConfig = Field(default_factory=ModeConfig.precision)

    @model_validator(mode="before")
    @classmethod
    def _merge_defaults(cls, data):
        # Partial overrides in YAML keep the built-in values for omitted keys
        if not isinstance(data, dict):
            return data
        merged = dict(data)
        for name, factory in (("normal", ModeConfig.normal), ("precision", ModeConfig.precision)):
            override = data.get(name)
            if isinstance(override, dict):
                merged[name] = {**factory().model_dump(), **override}
        return merged

    def for_mode(self, mode: TradingMode) -> ModeConfig:
        return self.precision if TradingMode(mode) == TradingMode.PRECISION else self.normal


class MetaConfig(BaseModel):
    """Meta-confidence blending weights and mode damping."""
    agreement_weight: float = 0.3
    uncertainty_weight: float = 0.25
    quality_weight: float = 0.3
    timeframe_weight: float = 0.15
    target_low: float = 0.5
    target_high: float = 0.9
    sigmoid_steepness: float = 6.0
    normal_scaling: float = 0.95
    precision_scaling: float = 0.85
    expected_timeframes: int = Field(default=3, ge=1)
    unanimous_bonus: float = 1.05
    majority_penalty: float = 0.95


class DisplayConfig(BaseModel):
    """Display band and wording thresholds."""
    min_confidence: float = 0.5
    max_confidence: float = 0.9
    hold_threshold: float = 0.6
    strong_threshold: float = 0.8
    regular_threshold: float = 0.7
    pulse_threshold: float = 0.8


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    structured: bool = True
    log_file: Optional[str] = None
    metrics_file: Optional[str] = None


_SECTIONS = {
    "pipeline": PipelineConfig,
    "ensemble": EnsembleConfig,
    "uncertainty": UncertaintyConfig,
    "conformal": ConformalConfig,
    "modes": ModesConfig,
    "meta": MetaConfig,
    "display": DisplayConfig,
    "logging": LoggingConfig,
}


@dataclass
class Config:
    """Top-level configuration."""
    symbol: str = "BTCUSDT"

    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    ensemble: EnsembleConfig = field(default_factory=EnsembleConfig)
    uncertainty: UncertaintyConfig = field(default_factory=UncertaintyConfig)
    conformal: ConformalConfig = field(default_factory=ConformalConfig)
    modes: ModesConfig = field(default_factory=ModesConfig)
    meta: MetaConfig = field(default_factory=MetaConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: dict) -> "Config":
        config = cls(symbol=data.get("symbol", "BTCUSDT"))
        try:
            for name, model in _SECTIONS.items():
                if name in data and data[name] is not None:
                    setattr(config, name, model(**data[name]))
        except ValidationError as exc:
            raise ConfigError(str(exc)) from exc
        return config

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        """Load configuration from a YAML file."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"{path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"{path}: top level must be a mapping")
        return cls.from_dict(data)

    @classmethod
    def default(cls) -> "Config":
        return cls()


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file, or defaults when the file is absent."""
    if config_path is None:
        config_path = Path(__file__).parent.parent.parent.parent / "config" / "default.yaml"

    if config_path.exists():
        return Config.from_yaml(config_path)
    return Config.default()
