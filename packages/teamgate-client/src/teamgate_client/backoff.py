"""Retry delay schedules as pure functions of the attempt number (0-based)."""

from __future__ import annotations


def exponential_delay(attempt: int, base_s: float, max_s: float | None = None) -> float:
    """``base_s * 2**attempt``, capped at ``max_s``."""
    if attempt < 0:
        raise ValueError("attempt must be >= 0")
    delay = base_s * (2**attempt)
    return min(delay, max_s) if max_s is not None else delay


def linear_delay(attempt: int, step_s: float) -> float:
    """``step_s * (attempt + 1)``: the first retry waits one step."""
    if attempt < 0:
        raise ValueError("attempt must be >= 0")
    return step_s * (attempt + 1)


def fixed_delay(attempt: int, interval_s: float) -> float:
    if attempt < 0:
        raise ValueError("attempt must be >= 0")
    return interval_s
