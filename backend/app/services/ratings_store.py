import base64
import binascii
import json
import logging
from dataclasses import dataclass, field
from typing import Any

import boto3
from boto3.dynamodb.types import TypeDeserializer, TypeSerializer
from botocore.exceptions import BotoCoreError, ClientError

from ..config import Settings
from ..errors import StorageError, ValidationError
from ..models import RatingRecord

logger = logging.getLogger(__name__)

PARTITION_KEY = "channelId"
SORT_KEY = "timestamp"

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()


@dataclass
class RatingPage:
    records: list[RatingRecord] = field(default_factory=list)
    next_cursor: str | None = None


def encode_cursor(last_evaluated_key: dict[str, Any] | None) -> str | None:
    if not last_evaluated_key:
        return None
    raw = json.dumps(last_evaluated_key, separators=(",", ":"), sort_keys=True)
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def decode_cursor(cursor: str | None) -> dict[str, Any] | None:
    if not cursor:
        return None
    try:
        decoded = json.loads(base64.b64decode(cursor.encode("ascii"), validate=True).decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError):
        raise ValidationError("Invalid pagination cursor")
    if not isinstance(decoded, dict) or not decoded or not all(isinstance(v, dict) for v in decoded.values()):
        raise ValidationError("Invalid pagination cursor")
    return decoded


def _serialize(item: dict[str, Any]) -> dict[str, Any]:
    return {key: _serializer.serialize(value) for key, value in item.items()}


def _deserialize(item: dict[str, Any]) -> dict[str, Any]:
    return {key: _deserializer.deserialize(value) for key, value in item.items()}


class RatingsStore:
    """
    Rating records in a DynamoDB table keyed by (channelId, timestamp).

    Built on the low-level client rather than the Table resource so one store
    can be shared by the search enricher's worker threads.
    """

    def __init__(self, client, table_name: str):
        self.client = client
        self.table_name = table_name

    @classmethod
    def from_settings(cls, settings: Settings) -> "RatingsStore":
        table_name = settings.require_table_name()
        client = boto3.client("dynamodb", region_name=settings.aws_region)
        return cls(client, table_name)

    def query_by_creator(
        self,
        channel_id: str,
        limit: int | None = None,
        cursor: str | None = None,
        filters: dict[str, str] | None = None,
        newest_first: bool = True,
    ) -> RatingPage:
        names = {"#pk": PARTITION_KEY}
        values = {":pk": _serializer.serialize(channel_id)}
        params: dict[str, Any] = {
            "TableName": self.table_name,
            "KeyConditionExpression": "#pk = :pk",
            "ScanIndexForward": not newest_first,
        }
        if filters:
            clauses = []
            for index, (attribute, expected) in enumerate(sorted(filters.items())):
                names[f"#f{index}"] = attribute
                values[f":f{index}"] = _serializer.serialize(expected)
                clauses.append(f"#f{index} = :f{index}")
            params["FilterExpression"] = " AND ".join(clauses)
        params["ExpressionAttributeNames"] = names
        params["ExpressionAttributeValues"] = values
        if limit:
            params["Limit"] = limit
        start_key = decode_cursor(cursor)
        if start_key:
            params["ExclusiveStartKey"] = start_key

        try:
            response = self.client.query(**params)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError("query", detail=str(exc), channel_id=channel_id, filters=filters) from exc
        return self._page(response)

    def query_all_by_creator(
        self,
        channel_id: str,
        filters: dict[str, str] | None = None,
    ) -> list[RatingRecord]:
        records: list[RatingRecord] = []
        cursor = None
        while True:
            page = self.query_by_creator(channel_id, cursor=cursor, filters=filters)
            records.extend(page.records)
            if not page.next_cursor:
                return records
            cursor = page.next_cursor

    def scan_page(self, cursor: str | None = None, limit: int | None = None) -> RatingPage:
        params: dict[str, Any] = {"TableName": self.table_name}
        if limit:
            params["Limit"] = limit
        start_key = decode_cursor(cursor)
        if start_key:
            params["ExclusiveStartKey"] = start_key

        try:
            response = self.client.scan(**params)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError("scan", detail=str(exc), limit=limit) from exc
        return self._page(response)

    def put(self, record: RatingRecord) -> None:
        try:
            self.client.put_item(TableName=self.table_name, Item=_serialize(record.to_item()))
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(
                "put",
                detail=str(exc),
                channel_id=record.channel_id,
                submitted_at=record.submitted_at,
            ) from exc

    def _page(self, response: dict[str, Any]) -> RatingPage:
        records = []
        for raw in response.get("Items", []):
            try:
                records.append(RatingRecord.from_item(_deserialize(raw)))
            except ValueError:
                logger.warning("Skipping malformed rating item in %s: %s", self.table_name, raw.get(PARTITION_KEY))
        return RatingPage(records=records, next_cursor=encode_cursor(response.get("LastEvaluatedKey")))
