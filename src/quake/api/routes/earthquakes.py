"""Earthquakes endpoint -- time/magnitude filtered listing with signed nextToken paging."""

import time

import structlog
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from quake.api.deps import get_event_store, get_next_token_secret
from quake.api.pagination import EarthquakePage
from quake.api.validation import QueryParameterError, build_query_request
from quake.common.config import Settings, get_settings
from quake.common.models import ErrorResponse
from quake.query.engine import execute_query
from quake.store.protocol import EventStore

logger = structlog.get_logger()
router = APIRouter()


@router.get(
    "/earthquakes",
    response_model=EarthquakePage,
    responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def list_earthquakes(
    starttime: str | None = None,
    endtime: str | None = None,
    minmagnitude: float | None = None,
    page_size: int | None = Query(default=None, alias="pageSize", ge=1, le=100),
    next_token: str | None = Query(default=None, alias="nextToken"),
    store: EventStore = Depends(get_event_store),
    secret: str = Depends(get_next_token_secret),
    settings: Settings = Depends(get_settings),
):
    """List earthquakes one page at a time.

    Day partitions are read oldest day first, so earlier pages cover earlier
    days; items within a single page are ordered newest first.

    Pass the returned ``nextToken`` back to fetch the next page; the filter
    parameters may then be omitted, but must match the token if re-supplied.
    """
    started = time.perf_counter()
    try:
        request = build_query_request(
            starttime=starttime,
            endtime=endtime,
            minmagnitude=minmagnitude,
            page_size=page_size,
            next_token=next_token,
            secret=secret,
            default_page_size=settings.default_page_size,
            max_future_days=settings.max_future_days,
            now_ms=int(time.time() * 1000),
        )
    except QueryParameterError as exc:
        logger.warning("query_validation_failed", error="VALIDATION_ERROR", reason=exc.message)
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(error="VALIDATION_ERROR", message=exc.message, details=exc.details).model_dump(),
        )

    result = await execute_query(request, store, secret)

    logger.info(
        "query_completed",
        query={
            "starttime": request.start_time,
            "endtime": request.end_time,
            "minmagnitude": request.min_magnitude,
            "pageSize": request.page_size,
        },
        result_count=len(result.items),
        buckets_scanned=result.buckets_scanned,
        has_next_token=result.next_cursor is not None,
        latency_ms=round((time.perf_counter() - started) * 1000, 1),
    )
    return EarthquakePage.from_result(result)
