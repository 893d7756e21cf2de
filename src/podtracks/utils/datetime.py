"""Timezone-aware datetime helpers."""

from datetime import datetime, timezone


def now_utc() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def from_unix(timestamp: int | float | None) -> datetime | None:
    """Convert a Unix timestamp to an aware UTC datetime.

    Zero and negative values are treated as "not provided", which is how
    the directory reports missing publish dates.
    """
    if isinstance(timestamp, bool) or not isinstance(timestamp, int | float) or timestamp <= 0:
        return None
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


def backup_stamp(moment: datetime | None = None) -> str:
    """Filesystem-safe timestamp used in backup file names."""
    moment = moment or now_utc()
    return moment.strftime("%Y%m%dT%H%M%S%fZ")
