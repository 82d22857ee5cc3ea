"""
Utility Functions for the Reactor Thermal Simulator

This module provides helper functions for input sanitising,
unit conversions and timestamps.
"""

import math
from datetime import datetime, timezone
from typing import Optional


def clamp(value: float, lower: float, upper: float) -> float:
    """
    Clamp a value to the closed interval [lower, upper].

    NaN is mapped to the lower bound.

    Args:
        value: Value to clamp
        lower: Lower bound
        upper: Upper bound

    Returns:
        Clamped value
    """
    value = float(value)
    if math.isnan(value):
        return lower
    return max(lower, min(upper, value))


def clamp_non_negative(value: float) -> float:
    """
    Clamp a value to [0, inf).

    NaN is mapped to 0.
    """
    value = float(value)
    if math.isnan(value):
        return 0.0
    return max(0.0, value)


def whole_seconds(duration: float) -> Optional[int]:
    """
    Normalise a delay to whole seconds.

    Fractions are truncated; negative and NaN values give 0.
    Positive infinity gives None, meaning the delay never elapses.

    Args:
        duration: Requested delay [s]

    Returns:
        Delay in whole seconds, or None for an unbounded delay
    """
    duration = float(duration)
    if duration == math.inf:
        return None
    if math.isnan(duration) or duration <= 0:
        return 0
    return int(duration)


def watts_to_megawatts(watts: float) -> float:
    """Convert power from W to MW."""
    return watts * 1e-6


def utc_timestamp(moment: datetime = None) -> str:
    """
    Format a moment as an ISO-8601 UTC instant, e.g. ``2024-01-01T12:00:00.000Z``.

    Args:
        moment: Time to format (default: now)

    Returns:
        Timestamp string
    """
    if moment is None:
        moment = datetime.now(timezone.utc)
    elif moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    else:
        moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")
