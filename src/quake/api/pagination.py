"""Response envelope for paginated earthquake listings."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SerializerFunctionWrapHandler, model_serializer

from quake.common.models import EarthquakeEvent
from quake.query.engine import QueryResult


class EarthquakePage(BaseModel):
    """One page of earthquakes; ``nextToken`` is omitted on the final page."""

    model_config = ConfigDict(populate_by_name=True)

    items: list[EarthquakeEvent]
    next_token: str | None = Field(default=None, alias="nextToken")

    @model_serializer(mode="wrap")
    def _omit_missing_token(self, handler: SerializerFunctionWrapHandler):
        data: dict[str, Any] = handler(self)
        for key in ("nextToken", "next_token"):
            if key in data and data[key] is None:
                del data[key]
        return data

    @classmethod
    def from_result(cls, result: QueryResult) -> "EarthquakePage":
        return cls(items=result.items, next_token=result.next_cursor)
