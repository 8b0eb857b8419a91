"""EventStore Protocol: the partitioned range-query contract the query engine relies on.

Implementations may over-fetch internally, but must never return more than
``limit`` filtered items and must set ``continuation_key`` whenever the
partition may still hold matching items beyond what was returned.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from quake.common.models import EarthquakeEvent


@dataclass
class PartitionPage:
    """One call's worth of results from a single day partition."""

    items: list[EarthquakeEvent] = field(default_factory=list)
    continuation_key: dict[str, Any] | None = None

    @property
    def has_more(self) -> bool:
        return self.continuation_key is not None


@runtime_checkable
class EventStore(Protocol):
    """Structural interface for partitioned earthquake stores."""

    async def query_partition(
        self,
        *,
        bucket_key: str,
        start_time: int,
        end_time: int,
        min_magnitude: float,
        limit: int,
        continuation_key: dict[str, Any] | None = None,
    ) -> PartitionPage: ...

    async def health_check(self) -> bool: ...
