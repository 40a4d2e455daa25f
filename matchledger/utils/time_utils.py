"""
Utility functions for the match ledger engine.

This module contains the wall clock helpers and time formatting used
throughout the application. Engine functions never call the clock directly;
they accept a ``clock`` callable and fall back to :func:`now_ms`.
"""
import time
from typing import Callable, Optional

Clock = Callable[[], int]


def fmt_mmss(seconds: int) -> str:
    """
    Format seconds as MM:SS string.

    Args:
        seconds: Number of seconds to format

    Returns:
        Formatted time string in MM:SS format

    Example:
        >>> fmt_mmss(90)
        '01:30'
        >>> fmt_mmss(3661)
        '61:01'
    """
    m = seconds // 60
    s = seconds % 60
    return f"{m:02d}:{s:02d}"


def fmt_ms_mmss(milliseconds: int) -> str:
    """Format a millisecond duration as MM:SS, truncating partial seconds.

    Example:
        >>> fmt_ms_mmss(61999)
        '01:01'
    """
    return fmt_mmss(max(0, int(milliseconds)) // 1000)


def now_ms() -> int:
    """Get current timestamp in integer epoch milliseconds."""
    return int(time.time() * 1000)


def resolve_clock(clock: Optional[Clock]) -> Clock:
    """Return ``clock`` or the wall clock when none was injected."""
    return clock if clock is not None else now_ms
