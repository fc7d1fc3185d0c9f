"""Human-readable formatting helpers for durations, sizes and paths."""

import os
from datetime import datetime, timedelta
from typing import Optional


def format_duration(d: timedelta) -> str:
    """Format a session duration.

    45s → "45s", 125s → "2m 5s", 3h 20m → "3h 20m"
    """
    seconds = int(d.total_seconds())
    if seconds < 0:
        return "0s"
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m {seconds % 60}s"
    return f"{seconds // 3600}h {(seconds // 60) % 60}m"


def format_short_duration(d: timedelta) -> str:
    """Compact duration for the session table: "1h5m" or "12m"."""
    seconds = max(int(d.total_seconds()), 0)
    hours, minutes = seconds // 3600, (seconds // 60) % 60
    if hours > 0:
        return f"{hours}h{minutes}m"
    return f"{minutes}m"


def format_uptime(d: timedelta) -> str:
    seconds = int(d.total_seconds())
    if seconds < 0:
        return "unknown"
    days, rem = divmod(seconds, 86400)
    hours, rem = divmod(rem, 3600)
    minutes = rem // 60
    if days > 0:
        return f"{days}d {hours}h"
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def format_relative_gap(current: Optional[datetime], previous: Optional[datetime]) -> str:
    """Time since the previous message, e.g. "+2s" or "+1m30s". Empty if unknown."""
    if current is None or previous is None:
        return ""
    seconds = int((current - previous).total_seconds())
    if seconds <= 0:
        return ""
    if seconds < 60:
        return f"+{seconds}s"
    return f"+{seconds // 60}m{seconds % 60}s"


def format_cpu(percent: float) -> str:
    if percent > 99.9:
        return ">99%"
    return f"{percent:.1f}%"


def format_memory(mb: float) -> str:
    if mb > 1024:
        return f"{mb / 1024:.2f}G"
    return f"{mb:.2f}M"


def format_timestamp(ts: Optional[datetime]) -> str:
    return ts.strftime("%Y-%m-%d %H:%M") if ts else "unknown"


def truncate_path(path: str, max_len: int, home: Optional[str] = None) -> str:
    """Replace the home directory with ~ and middle-truncate to max_len."""
    home = home if home is not None else os.path.expanduser("~")
    if home and home != "/" and (path == home or path.startswith(home + "/")):
        path = "~" + path[len(home):]

    if len(path) <= max_len:
        return path
    if max_len < 10:
        return path[:max_len]

    keep = max_len - 3
    left = (keep + 1) // 2
    right = keep - left
    return path[:left] + "..." + path[len(path) - right:]
