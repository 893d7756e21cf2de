"""Episode duration parsing.

Feeds declare durations as plain seconds ("45"), "MM:SS" or "HH:MM:SS";
the directory sends integers. Anything else is reported as unknown rather
than guessed, so "five minutes" can be told apart from "we don't know".
"""

import re

# Sentinel for "duration not known". Distinct from 0, which is a real value.
UNKNOWN_DURATION = None

_CLOCK_RE = re.compile(r"^\d+(?::\d{1,2}){0,2}$")


def parse_duration(value: str | int | float | None) -> int | None:
    """Convert a declared duration to whole seconds.

    Args:
        value: Raw duration as found in a feed or API payload

    Returns:
        Non-negative seconds, or UNKNOWN_DURATION when absent or unparseable

    Example:
        >>> parse_duration("1:23:45")
        5025
        >>> parse_duration("3:45")
        225
        >>> parse_duration("45")
        45
        >>> parse_duration("soon") is UNKNOWN_DURATION
        True
    """
    if value is None or isinstance(value, bool):
        return UNKNOWN_DURATION

    if isinstance(value, int | float):
        if value < 0:
            return UNKNOWN_DURATION
        return int(value)

    text = value.strip()
    if not text:
        return UNKNOWN_DURATION

    # Some feeds emit fractional seconds ("225.5")
    if re.fullmatch(r"\d+\.\d+", text):
        return int(float(text))

    if not _CLOCK_RE.match(text):
        return UNKNOWN_DURATION

    seconds = 0
    for part in text.split(":"):
        seconds = seconds * 60 + int(part)
    return seconds


def format_duration(seconds: int | None) -> str:
    """Render seconds as H:MM:SS / M:SS, or "?" when unknown."""
    if seconds is UNKNOWN_DURATION:
        return "?"
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"
