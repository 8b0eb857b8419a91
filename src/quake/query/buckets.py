"""Day-bucket partition keys for the time-ordered event index."""

from datetime import UTC, datetime, timedelta

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

# Instants representable as a UTC datetime: 0001-01-01T00:00:00.000Z .. 9999-12-31T23:59:59.999Z
MIN_TIMESTAMP_MS = -62_135_596_800_000
MAX_TIMESTAMP_MS = 253_402_300_799_999


def _utc_day(instant_ms: int) -> datetime:
    moment = _EPOCH + timedelta(milliseconds=instant_ms)
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def _bucket_key(day: datetime) -> str:
    # strftime("%Y") is not zero-padded below year 1000 on glibc.
    return f"{day.year:04d}{day.month:02d}{day.day:02d}"


def day_bucket_for(instant_ms: int) -> str:
    """Return the ``YYYYMMDD`` bucket key of the UTC day containing ``instant_ms``."""
    return _bucket_key(_utc_day(instant_ms))


def enumerate_day_buckets(start_ms: int, end_ms: int) -> list[str]:
    """List every UTC calendar day touched by ``[start_ms, end_ms]``, oldest first.

    Both ends are truncated to midnight UTC and included, so a same-day range
    yields exactly one key. Returns an empty list when ``start_ms > end_ms``.
    Raises ValueError for instants outside MIN_TIMESTAMP_MS..MAX_TIMESTAMP_MS.
    """
    if start_ms > end_ms:
        return []
    if start_ms < MIN_TIMESTAMP_MS or end_ms > MAX_TIMESTAMP_MS:
        raise ValueError(f"instant range [{start_ms}, {end_ms}] is outside the representable UTC calendar")
    first = _utc_day(start_ms)
    days = (_utc_day(end_ms) - first).days
    return [_bucket_key(first + timedelta(days=offset)) for offset in range(days + 1)]
