"""Structured logging and per-cycle metrics output."""

import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional, TextIO, Union

import structlog

from signal_oracle.core.errors import ConfigError


def _resolve_level(level: str) -> int:
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ConfigError(f"Unknown log level: {level}")
    return value


def setup_logging(
    level: str = "INFO",
    structured: bool = True,
    log_file: Optional[Union[str, Path]] = None,
    stream: Optional[TextIO] = None,
) -> None:
    """Configure stdlib logging and the structlog processor chain.

    Calling it again replaces the previous handlers, so the CLI can switch
    levels and streams between commands.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=stream or sys.stdout,
        level=_resolve_level(level),
        force=True,
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if structured:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, encoding="utf-8")
        handler.setFormatter(logging.Formatter("%(message)s"))
        logging.getLogger().addHandler(handler)


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    return structlog.get_logger(name)


class MetricsLogger:
    """JSONL sink: one object per completed decision cycle."""

    def __init__(self, metrics_file: Path):
        self.metrics_file = Path(metrics_file)
        self.metrics_file.parent.mkdir(parents=True, exist_ok=True)
        self._file: Optional[TextIO] = None

    def log(self, metrics: dict[str, Any]) -> None:
        if self._file is None:
            self._file = open(self.metrics_file, "a", encoding="utf-8")
        # Enums and datetimes fall back to str()
        self._file.write(json.dumps(metrics, ensure_ascii=False, default=str) + "\n")
        self._file.flush()

    def close(self) -> None:
        if self._file:
            self._file.close()
            self._file = None

    def __enter__(self) -> "MetricsLogger":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
