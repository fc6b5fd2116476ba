"""Command line interface for signal-oracle."""

import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

import click
import yaml
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from signal_oracle.conformal.gate import ConformalGate
from signal_oracle.core.config import Config, ConformalConfig, load_config
from signal_oracle.core.errors import ConfigError
from signal_oracle.core.log import setup_logging
from signal_oracle.core.types import PredictionResult, TradingMode, UncertaintyResult
from signal_oracle.ensemble.inference import StaticInference
from signal_oracle.pipeline import SignalPipeline

console = Console()

MODE_CHOICE = click.Choice([m.value for m in TradingMode], case_sensitive=False)


def _load(config_path: Optional[Path]) -> Config:
    try:
        return load_config(config_path)
    except ConfigError as exc:
        raise click.ClickException(f"Invalid configuration: {exc}") from exc


def _read_outputs(path: Path) -> list[dict]:
    """Model outputs from a JSON or YAML file.

    Accepts a list of ``{timeframe, signal, confidence[, candles]}`` entries
    or a mapping holding that list under ``outputs``.
    """
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise click.ClickException(f"Cannot parse {path}: {exc}") from exc

    if isinstance(data, dict):
        data = data.get("outputs")
    if not isinstance(data, list):
        raise click.ClickException(f"{path}: expected a list of model outputs")

    for entry in data:
        if not isinstance(entry, dict) or "timeframe" not in entry or "signal" not in entry:
            raise click.ClickException(f"{path}: every output needs 'timeframe' and 'signal'")
    return data


def _color(signal: str) -> str:
    return {"BUY": "green", "SELL": "red"}.get(signal, "yellow")


@click.group()
@click.version_option(package_name="signal-oracle")
def cli():
    """AI signal decision pipeline."""


@cli.command()
@click.argument("input_path", metavar="INPUT", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--mode", type=MODE_CHOICE, default=None, help="Trading mode (config default when omitted)")
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path), default=None)
@click.option("--json", "as_json", is_flag=True, help="Print the display payload as JSON")
def evaluate(input_path: Path, mode: Optional[str], config_path: Optional[Path], as_json: bool):
    """Run one decision cycle over recorded model outputs."""
    config = _load(config_path)
    setup_logging(
        level="ERROR" if as_json else config.logging.level,
        structured=config.logging.structured,
        log_file=config.logging.log_file,
        stream=sys.stderr,
    )

    entries = _read_outputs(input_path)
    outputs = {str(e["timeframe"]): (e["signal"], e.get("confidence", 0.0)) for e in entries}
    windows = {
        str(e["timeframe"]): range(int(e.get("candles", config.ensemble.min_candles)))
        for e in entries
    }

    pipeline = SignalPipeline(config, StaticInference(outputs))
    try:
        result = asyncio.run(pipeline.run_cycle(windows, mode=TradingMode(mode) if mode else None))
    finally:
        pipeline.close()

    if as_json:
        payload = result.display.to_dict()
        payload["predictions"] = [
            {"timeframe": p.timeframe, "signal": p.signal.value, "confidence": p.confidence, **p.meta}
            for p in result.predictions
        ]
        payload["should_execute"] = result.mode_result.should_execute
        click.echo(json.dumps(payload, ensure_ascii=False, indent=2))
        return

    table = Table(title="Per-timeframe predictions")
    table.add_column("Timeframe")
    table.add_column("Signal")
    table.add_column("Confidence", justify="right")
    table.add_column("Gate")
    table.add_column("Risk")
    table.add_column("Note")
    for prediction, gated in zip(result.predictions, result.conformal_results):
        table.add_row(
            prediction.timeframe,
            f"[{_color(prediction.signal.value)}]{prediction.signal.value}[/]",
            f"{prediction.confidence:.2f}",
            "pass" if gated.passes_gate else "block",
            gated.risk_level.description,
            ", ".join(prediction.meta.values()),
        )
    console.print(table)

    display = result.display
    console.print(Panel(
        f"{display.display_text}\n{display.confidence_display}\n\n{display.detailed_info.confidence_breakdown}",
        title=f"[bold {_color(display.signal.value)}]{display.signal.value}[/]",
    ))
    console.print(f"[dim]{display.detailed_info.model_agreement} | {display.detailed_info.risk_assessment}[/dim]")
    console.print(f"[dim]{display.detailed_info.consensus_details}[/dim]")


@cli.command("show-config")
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path), default=None)
def show_config(config_path: Optional[Path]):
    """Print the effective configuration."""
    config = _load(config_path)
    sections = {"symbol": config.symbol}
    for name in ("pipeline", "ensemble", "uncertainty", "conformal", "modes", "meta", "display", "logging"):
        sections[name] = getattr(config, name).model_dump(mode="json")
    click.echo(yaml.safe_dump(sections, sort_keys=False))


@cli.command()
@click.argument("confidence", type=click.FloatRange(0.0, 1.0))
@click.argument("uncertainty", type=click.FloatRange(0.0, 1.0))
@click.option("--signal", type=click.Choice(["BUY", "SELL", "HOLD"], case_sensitive=False), default="BUY")
@click.option("--alpha", type=click.FloatRange(0.0, 1.0, min_open=True, max_open=True), default=None)
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path), default=None)
def gate(confidence: float, uncertainty: float, signal: str, alpha: Optional[float], config_path: Optional[Path]):
    """Run one prediction through the conformal gate."""
    config = _load(config_path)
    setup_logging(level="WARNING", structured=config.logging.structured, stream=sys.stderr)
    gate_config = config.conformal
    if alpha is not None:
        gate_config = ConformalConfig(**{**gate_config.model_dump(), "alpha": alpha})

    conformal = ConformalGate(gate_config)
    prediction = PredictionResult.create(signal, confidence, model_id="cli", timeframe="unknown")
    estimate = UncertaintyResult(
        epistemic=uncertainty,
        aleatoric=0.0,
        total=uncertainty,
        confidence_interval=(max(0.0, confidence - uncertainty), min(1.0, confidence + uncertainty)),
    )
    result = conformal.evaluate(prediction, estimate)

    low, high = result.prediction_interval
    verdict = "[green]PASS[/green]" if result.passes_gate else "[red]BLOCK[/red]"
    console.print(f"Interval: [{low:.3f}, {high:.3f}] (width {result.interval_width:.3f}, q={conformal.quantile:.3f})")
    console.print(f"Risk: [{result.risk_level.color}]{result.risk_level.description}[/]")
    console.print(f"Criteria passed: {result.criteria_passed}/4")
    console.print(f"Verdict: {verdict}")


if __name__ == "__main__":
    cli()
