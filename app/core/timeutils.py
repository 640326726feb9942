from datetime import datetime, timedelta, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; everything we store is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def deadline_window(now: datetime, lookahead: timedelta) -> tuple[datetime, datetime]:
    """Closed interval [now, now + lookahead] of deadlines worth a reminder."""
    start = as_utc(now)
    return start, start + lookahead


def in_window(moment: datetime, window: tuple[datetime, datetime]) -> bool:
    start, end = window
    return start <= as_utc(moment) <= end


def is_open(start_date: datetime, end_date: datetime, at: datetime) -> bool:
    return as_utc(start_date) <= as_utc(at) < as_utc(end_date)


def late_by_minutes(deadline: datetime | None, submitted_at: datetime) -> int | None:
    """Whole minutes past the deadline, or None when there is no deadline."""
    if deadline is None:
        return None
    delta = as_utc(submitted_at) - as_utc(deadline)
    if delta.total_seconds() <= 0:
        return 0
    return int(delta.total_seconds() // 60)
