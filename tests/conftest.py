"""Shared test fixtures for the earthquake query test suite."""

from typing import Any

import pytest

from quake.common.models import EarthquakeEvent
from quake.store.protocol import PartitionPage

TEST_SECRET = "test-next-token-secret-0123456789"


class FakeEventStore:
    """In-memory EventStore keyed by day bucket.

    Continuation keys are ``{"offset": n}`` positions into the bucket's
    time-filtered records. ``scan_cap`` limits raw records examined per call,
    mimicking a store whose own fetch limit applies before the magnitude
    filter. A key is also returned when a call fills ``limit`` exactly, so a
    resumed scan never revisits items already handed out.
    """

    def __init__(
        self,
        partitions: dict[str, list[EarthquakeEvent]] | None = None,
        scan_cap: int | None = None,
    ) -> None:
        self.partitions = {
            bucket: sorted(events, key=lambda e: (-e.event_ts_ms, e.event_id))
            for bucket, events in (partitions or {}).items()
        }
        self.scan_cap = scan_cap
        self.calls: list[dict[str, Any]] = []
        self.failing_buckets: set[str] = set()
        self.healthy = True

    async def query_partition(
        self,
        *,
        bucket_key: str,
        start_time: int,
        end_time: int,
        min_magnitude: float,
        limit: int,
        continuation_key: dict[str, Any] | None = None,
    ) -> PartitionPage:
        self.calls.append(
            {
                "bucket_key": bucket_key,
                "start_time": start_time,
                "end_time": end_time,
                "min_magnitude": min_magnitude,
                "limit": limit,
                "continuation_key": continuation_key,
            }
        )
        if bucket_key in self.failing_buckets:
            raise ConnectionError(f"partition {bucket_key} unreachable")

        records = [e for e in self.partitions.get(bucket_key, []) if start_time <= e.event_ts_ms <= end_time]
        position = continuation_key["offset"] if continuation_key else 0
        scanned = 0
        matched: list[EarthquakeEvent] = []
        while position < len(records) and len(matched) < limit:
            if self.scan_cap is not None and scanned >= self.scan_cap:
                break
            record = records[position]
            position += 1
            scanned += 1
            if record.mag >= min_magnitude:
                matched.append(record)

        more = position < len(records) or (bool(matched) and len(matched) == limit)
        return PartitionPage(items=matched, continuation_key={"offset": position} if more else None)

    async def health_check(self) -> bool:
        return self.healthy


@pytest.fixture
def secret():
    return TEST_SECRET


@pytest.fixture
def make_event():
    """Factory for EarthquakeEvent instances with sensible defaults."""

    def _make(event_id: str, event_ts_ms: int, mag: float = 3.0, **overrides: Any) -> EarthquakeEvent:
        fields: dict[str, Any] = {
            "event_id": event_id,
            "event_ts_ms": event_ts_ms,
            "mag": mag,
            "place": "10 km NE of Ridgecrest, CA",
            "lat": 35.7,
            "lon": -117.5,
            "depth": 8.2,
            "source": "usgs",
        }
        fields.update(overrides)
        return EarthquakeEvent(**fields)

    return _make


@pytest.fixture
def make_store():
    """Factory for FakeEventStore instances."""

    def _make(partitions: dict[str, list[EarthquakeEvent]] | None = None, scan_cap: int | None = None):
        return FakeEventStore(partitions, scan_cap=scan_cap)

    return _make
