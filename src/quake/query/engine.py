"""Paginated earthquake queries across day partitions.

Each call scans day buckets in order, starting from the position recorded in
the request's cursor (if any), and stops as soon as either the page is full or
a partition reports that it still holds more data. In both cases a fresh
signed cursor pinned to the current bucket is returned.
"""

from dataclasses import dataclass, field
from typing import Any

import structlog
from pydantic import BaseModel, Field, field_validator, model_validator

from quake.common.models import EarthquakeEvent
from quake.query.buckets import MAX_TIMESTAMP_MS, MIN_TIMESTAMP_MS, enumerate_day_buckets
from quake.query.cursor import ResumeState, decode_cursor, encode_cursor, verify_binding
from quake.query.errors import StoreUnavailable
from quake.store.protocol import EventStore

logger = structlog.get_logger()

MIN_PAGE_SIZE = 1
MAX_PAGE_SIZE = 100
MAX_WINDOW_MS = 365 * 24 * 60 * 60 * 1000


class QueryRequest(BaseModel):
    start_time: int
    end_time: int
    min_magnitude: float = Field(ge=-2.0, le=10.0)
    page_size: int = 50
    cursor: str | None = None

    @field_validator("page_size")
    @classmethod
    def _clamp_page_size(cls, value: int) -> int:
        return max(MIN_PAGE_SIZE, min(MAX_PAGE_SIZE, value))

    @model_validator(mode="after")
    def _check_window(self) -> "QueryRequest":
        for value in (self.start_time, self.end_time):
            if not MIN_TIMESTAMP_MS <= value <= MAX_TIMESTAMP_MS:
                raise ValueError("starttime and endtime must fall between 0001-01-01 and 9999-12-31 UTC")
        if self.end_time < self.start_time:
            raise ValueError("endtime must be >= starttime")
        if self.end_time - self.start_time > MAX_WINDOW_MS:
            raise ValueError("Query window cannot exceed 365 days")
        return self


@dataclass
class QueryResult:
    items: list[EarthquakeEvent] = field(default_factory=list)
    next_cursor: str | None = None
    buckets_scanned: int = 0


def sort_events(items: list[EarthquakeEvent]) -> list[EarthquakeEvent]:
    """Most recent first; events sharing a timestamp ordered by ascending id."""
    return sorted(items, key=lambda event: (-event.event_ts_ms, event.event_id))


async def execute_query(request: QueryRequest, store: EventStore, secret: str | bytes) -> QueryResult:
    """Produce one page of results for ``request``.

    Cursor errors (MalformedCursor, InvalidSignature, UnsupportedVersion,
    ParameterMismatch) are raised before any store call. Any store failure is
    raised as StoreUnavailable and no partial page is returned.
    """
    state: ResumeState | None = None
    if request.cursor:
        state = decode_cursor(request.cursor, secret)
        verify_binding(state, request.start_time, request.end_time, request.min_magnitude, request.page_size)

    if state is not None:
        buckets = list(state.bucket_keys)
        start_index = state.bucket_index
    else:
        buckets = enumerate_day_buckets(request.start_time, request.end_time)
        start_index = 0

    items: list[EarthquakeEvent] = []
    buckets_scanned = 0

    for index in range(start_index, len(buckets)):
        bucket_key = buckets[index]
        continuation = state.continuation_key if state is not None and index == start_index else None

        try:
            page = await store.query_partition(
                bucket_key=bucket_key,
                start_time=request.start_time,
                end_time=request.end_time,
                min_magnitude=request.min_magnitude,
                limit=request.page_size - len(items),
                continuation_key=continuation,
            )
        except StoreUnavailable:
            raise
        except Exception as exc:
            # Adapter bugs land here too; the original type stays in the log and the metadata.
            logger.error(
                "store_query_failed",
                bucket=bucket_key,
                error_type=type(exc).__name__,
                exc_info=exc,
            )
            raise StoreUnavailable(
                f"Store query failed for bucket {bucket_key}",
                metadata={"bucket": bucket_key, "error_type": type(exc).__name__},
            ) from exc

        items.extend(page.items)
        buckets_scanned += 1
        logger.debug("partition_scanned", bucket=bucket_key, items=len(page.items), has_more=page.has_more)

        if len(items) >= request.page_size or page.has_more:
            next_cursor = encode_cursor(
                _resume_state(request, buckets, index, page.continuation_key),
                secret,
            )
            return _finish(items, next_cursor, buckets_scanned, request.page_size)

    return _finish(items, None, buckets_scanned, request.page_size)


def _resume_state(
    request: QueryRequest,
    buckets: list[str],
    index: int,
    continuation_key: dict[str, Any] | None,
) -> ResumeState:
    return ResumeState(
        start_time=request.start_time,
        end_time=request.end_time,
        min_magnitude=request.min_magnitude,
        page_size=request.page_size,
        bucket_keys=tuple(buckets),
        bucket_index=index,
        continuation_key=continuation_key,
    )


def _finish(
    items: list[EarthquakeEvent],
    next_cursor: str | None,
    buckets_scanned: int,
    page_size: int,
) -> QueryResult:
    ordered = sort_events(items)[:page_size]
    logger.info(
        "query_page_built",
        result_count=len(ordered),
        buckets_scanned=buckets_scanned,
        has_next_token=next_cursor is not None,
    )
    return QueryResult(items=ordered, next_cursor=next_cursor, buckets_scanned=buckets_scanned)
