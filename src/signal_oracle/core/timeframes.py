"""Timeframe helpers: conversions, labels and consensus priority."""

TIMEFRAME_PRIORITY = {
    "4h": 1.0,
    "1h": 0.8,
    "5m": 0.6,
}
UNKNOWN_TIMEFRAME = "unknown"
UNKNOWN_PRIORITY = 0.5

MINUTES_PER_UNIT = {"m": 1, "h": 60, "d": 1440, "w": 10080}


def timeframe_to_minutes(timeframe: str) -> int:
    """Length of a candle timeframe such as '5m', '1h' or '1d', in minutes."""
    tf = (timeframe or "").strip().lower()
    count, unit = tf[:-1], tf[-1:]
    if unit.isdigit():
        count, unit = tf, "m"
    if not count.isdigit() or unit not in MINUTES_PER_UNIT or int(count) == 0:
        raise ValueError(f"Unsupported timeframe: {timeframe!r}")
    return int(count) * MINUTES_PER_UNIT[unit]


def extract_timeframe(label: str) -> str:
    """Pull a known timeframe out of a model id or timeframe label."""
    if "5m" in label:
        return "5m"
    if "1h" in label:
        return "1h"
    if "4h" in label or "4H" in label:
        return "4h"
    return UNKNOWN_TIMEFRAME


def timeframe_priority(label: str) -> float:
    """Consensus weight of a timeframe: higher timeframes count more."""
    return TIMEFRAME_PRIORITY.get(extract_timeframe(label), UNKNOWN_PRIORITY)


def resolve_timeframe(*labels: str) -> str:
    """First known timeframe among the labels (timeframe field, then model id)."""
    for label in labels:
        timeframe = extract_timeframe(label or "")
        if timeframe != UNKNOWN_TIMEFRAME:
            return timeframe
    return UNKNOWN_TIMEFRAME
