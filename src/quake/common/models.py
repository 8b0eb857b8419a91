"""Pydantic schemas shared by the store, the query engine, and the API."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class EarthquakeEvent(BaseModel):
    """A single earthquake as stored in a day partition.

    Attribute names on the wire (JSON and DynamoDB) are camelCase; store key
    attributes such as ``pk`` or ``gsi1sk`` are ignored.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    event_id: str = Field(alias="eventId")
    event_ts_ms: int = Field(alias="eventTsMs")
    mag: float
    place: str | None = None
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)
    depth: float | None = None
    day_bucket: str | None = Field(default=None, alias="dayBucket")
    source: str | None = None
    ingested_at: int | None = Field(default=None, alias="ingestedAt")


class ErrorResponse(BaseModel):
    error: str
    message: str
    details: Any = None
