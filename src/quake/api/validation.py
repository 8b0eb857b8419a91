"""Query-string coercion for the earthquake listing endpoint.

Timestamps arrive as ISO-8601 strings or epoch-millisecond digits; the query
engine only ever sees epoch milliseconds. When a ``nextToken`` is supplied,
its bound parameters fill in whatever the client omitted.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

from pydantic import ValidationError

from quake.query.cursor import decode_cursor
from quake.query.engine import QueryRequest

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_ONE_MS = timedelta(milliseconds=1)


class QueryParameterError(ValueError):
    """Raised when query-string parameters are missing or invalid."""

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


def parse_timestamp(value: str) -> int:
    """Parse epoch milliseconds (all digits) or an ISO-8601 datetime into epoch milliseconds.

    Naive ISO datetimes are taken as UTC.
    """
    text = value.strip()
    # str.isdigit() also accepts superscripts and other non-ASCII digits int() rejects.
    if text.isascii() and text.isdigit():
        return int(text)
    try:
        moment = datetime.fromisoformat(text)
    except ValueError as exc:
        raise QueryParameterError(f"Invalid timestamp {value!r}: must be ISO-8601 or epoch milliseconds") from exc
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return (moment - _EPOCH) // _ONE_MS


def build_query_request(
    *,
    starttime: str | None,
    endtime: str | None,
    minmagnitude: float | None,
    page_size: int | None,
    next_token: str | None,
    secret: str,
    default_page_size: int,
    max_future_days: int,
    now_ms: int,
) -> QueryRequest:
    """Combine raw parameters (and an optional nextToken) into a validated QueryRequest.

    Cursor errors from decoding ``next_token`` propagate unchanged. Parameters
    re-supplied alongside a token are kept as given so the query engine can
    reject any that differ from the token's bound values.
    """
    start_time = parse_timestamp(starttime) if starttime is not None else None
    end_time = parse_timestamp(endtime) if endtime is not None else None

    if next_token:
        state = decode_cursor(next_token, secret)
        start_time = state.start_time if start_time is None else start_time
        end_time = state.end_time if end_time is None else end_time
        minmagnitude = state.min_magnitude if minmagnitude is None else minmagnitude
        page_size = state.page_size if page_size is None else page_size
    else:
        missing = [
            name
            for name, value in (("starttime", start_time), ("endtime", end_time), ("minmagnitude", minmagnitude))
            if value is None
        ]
        if missing:
            raise QueryParameterError(f"Missing required parameters: {', '.join(missing)}", {"missing": missing})
        page_size = default_page_size if page_size is None else page_size

    future_limit = now_ms + max_future_days * 24 * 60 * 60 * 1000
    if start_time > future_limit or end_time > future_limit:  # type: ignore[operator]
        raise QueryParameterError(f"Timestamp cannot be more than {max_future_days} days in future")

    try:
        return QueryRequest(
            start_time=start_time,
            end_time=end_time,
            min_magnitude=minmagnitude,
            page_size=page_size,
            cursor=next_token or None,
        )
    except ValidationError as exc:
        messages = [error["msg"] for error in exc.errors()]
        raise QueryParameterError("; ".join(messages), {"errors": messages}) from exc
