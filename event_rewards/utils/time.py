from datetime import datetime, timezone


def utcnow() -> datetime:
    # Keep naive UTC timestamps to match the TIMESTAMP columns.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(dt: datetime | None) -> datetime | None:
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)
