"""Clock Time Formatting — epoch + UTC offset to "hh:mm AM/PM", and the tolerant inverse.

Invariants:
    - to_clock_time is pure: same (epoch, offset) always yields the same string
    - The rendered time is local wall-clock at the city (epoch shifted by its UTC offset)
    - parse_clock_time never raises: unparseable input returns None
"""

from datetime import datetime, time, timezone

CLOCK_FORMAT = "%I:%M %p"


def to_clock_time(epoch_seconds: int, utc_offset_seconds: int) -> str:
    """Render *epoch_seconds* shifted by *utc_offset_seconds* as 12-hour clock time."""
    local = datetime.fromtimestamp(epoch_seconds + utc_offset_seconds, tz=timezone.utc)
    return local.strftime(CLOCK_FORMAT)


def parse_clock_time(value: str | None) -> time | None:
    """Parse "hh:mm AM/PM" into a time of day; None for anything else."""
    if not value:
        return None
    try:
        return datetime.strptime(value.strip(), CLOCK_FORMAT).time()
    except ValueError:
        return None


def minutes_between(start: time, end: time) -> int:
    """Signed minutes from *start* to *end* on the same day."""
    return (end.hour * 60 + end.minute) - (start.hour * 60 + start.minute)
