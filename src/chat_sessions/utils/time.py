from datetime import datetime, timedelta, timezone

_TICK = timedelta(microseconds=1)


def get_current_datetime() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def advance(previous: datetime) -> datetime:
    """Return the current time, but always strictly later than 'previous'."""
    return max(get_current_datetime(), as_utc(previous) + _TICK)
