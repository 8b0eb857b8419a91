"""DynamoDB storage for earthquake events, queried through the time-ordered day index."""

from typing import Any

import structlog
from boto3.dynamodb.types import TypeDeserializer
from botocore.exceptions import BotoCoreError, ClientError

from quake.common.models import EarthquakeEvent
from quake.query.errors import StoreUnavailable
from quake.store.protocol import PartitionPage

logger = structlog.get_logger()

# Table key + index key; together they form a valid ExclusiveStartKey for the GSI.
KEY_ATTRIBUTES = ("pk", "sk", "gsi1pk", "gsi1sk")

_deserializer = TypeDeserializer()


def partition_key(bucket_key: str) -> str:
    return f"DAY#{bucket_key}"


def item_key(item: dict[str, Any]) -> dict[str, Any]:
    """Extract the ExclusiveStartKey that resumes a query right after ``item``."""
    return {name: item[name] for name in KEY_ATTRIBUTES if name in item}


def item_to_event(item: dict[str, Any]) -> EarthquakeEvent:
    """Convert a low-level DynamoDB item (typed attribute values) into an EarthquakeEvent."""
    plain = {name: _deserializer.deserialize(value) for name, value in item.items()}
    return EarthquakeEvent.model_validate(plain)


class DynamoDBEventStore:
    """EventStore over a single DynamoDB table using the low-level aioboto3 client.

    ``Limit`` in DynamoDB applies before ``FilterExpression``, so each call
    over-fetches ``max(limit * fetch_multiplier, min_fetch_limit)`` raw items
    and trims the filtered result back to ``limit``.
    """

    def __init__(
        self,
        client: Any,
        table_name: str,
        index_name: str = "TimeOrderedIndex",
        fetch_multiplier: int = 3,
        min_fetch_limit: int = 100,
    ) -> None:
        self.client = client
        self.table_name = table_name
        self.index_name = index_name
        self.fetch_multiplier = fetch_multiplier
        self.min_fetch_limit = min_fetch_limit

    def fetch_limit(self, limit: int) -> int:
        return max(limit * self.fetch_multiplier, self.min_fetch_limit)

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
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")

        params: dict[str, Any] = {
            "TableName": self.table_name,
            "IndexName": self.index_name,
            "KeyConditionExpression": "gsi1pk = :pk AND gsi1sk BETWEEN :start AND :end",
            "FilterExpression": "mag >= :minMag",
            "ExpressionAttributeValues": {
                ":pk": {"S": partition_key(bucket_key)},
                ":start": {"N": str(start_time)},
                ":end": {"N": str(end_time)},
                ":minMag": {"N": repr(float(min_magnitude))},
            },
            "ScanIndexForward": False,
            "Limit": self.fetch_limit(limit),
        }
        if continuation_key is not None:
            params["ExclusiveStartKey"] = continuation_key

        try:
            response = await self.client.query(**params)
        except (ClientError, BotoCoreError) as exc:
            logger.error("dynamodb_query_failed", bucket=bucket_key, table=self.table_name, error=str(exc))
            raise StoreUnavailable(
                f"DynamoDB query failed for bucket {bucket_key}",
                metadata={"bucket": bucket_key},
            ) from exc

        raw_items: list[dict[str, Any]] = response.get("Items", [])
        next_key: dict[str, Any] | None = response.get("LastEvaluatedKey")

        if len(raw_items) > limit:
            # Resume right after the last item we hand back.
            raw_items = raw_items[:limit]
            next_key = item_key(raw_items[-1])
        elif next_key is None and raw_items and len(raw_items) == limit:
            # Filled exactly at the partition's end; a key-less cursor would rescan the whole bucket.
            next_key = item_key(raw_items[-1])

        logger.debug(
            "dynamodb_partition_query",
            bucket=bucket_key,
            returned=len(raw_items),
            scanned=response.get("ScannedCount"),
            has_more=next_key is not None,
        )
        return PartitionPage(items=[item_to_event(item) for item in raw_items], continuation_key=next_key)

    async def health_check(self) -> bool:
        try:
            await self.client.describe_table(TableName=self.table_name)
            return True
        except (ClientError, BotoCoreError):
            logger.warning("dynamodb_health_check_failed", table=self.table_name, exc_info=True)
            return False
