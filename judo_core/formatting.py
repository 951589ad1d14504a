"""Clock display helpers shared by renderers and the command router."""
from __future__ import annotations


def format_clock(milliseconds: int) -> str:
    """Return M:SS, dropping any sign.

    Examples:
        - 300000 → "5:00"
        - 65999 → "1:05"
        - -1500 → "0:01"
    """
    seconds = abs(milliseconds) // 1000
    minutes, seconds = divmod(seconds, 60)
    return f"{minutes}:{seconds:02d}"


def format_seconds(milliseconds: int) -> str:
    """Whole seconds, as shown on the osaekomi counter."""
    return str(milliseconds // 1000)


def format_tenths(milliseconds: int) -> str:
    # tenths digit of the absolute value
    return str((abs(milliseconds) % 1000) // 100)


def parse_clock_preset(preset: str | None) -> int | None:
    """Parse a clock preset string (M:SS format) to milliseconds.

    Args:
        preset: String like "4:00" or "0:30"

    Returns:
        Milliseconds as int, or None if parsing fails

    Examples:
        - "4:00" → 240000
        - "0:30" → 30000
        - "" → None
        - "1:75" → None
    """
    if not preset:
        return None
    try:
        minutes, seconds = preset.strip().split(":")
        mins = int(minutes or 0)
        secs = int(seconds or 0)
    except ValueError:
        return None
    if mins < 0 or secs < 0 or secs > 59:
        return None
    return (mins * 60 + secs) * 1000
