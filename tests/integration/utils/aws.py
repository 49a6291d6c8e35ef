"""Lightweight AWS service fakes for integration testing."""
from __future__ import annotations

import io
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Optional

from botocore.exceptions import ClientError


__all__ = [
    "client_error",
    "FakeS3",
    "FakeDynamoTable",
    "FakeDynamoResource",
]


def client_error(code: str, operation: str) -> ClientError:
    """Create a botocore-style ClientError."""

    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class FakeS3:
    """In-memory subset of the S3 API used by the dataset reader."""

    def __init__(self) -> None:
        self._buckets: Dict[str, Dict[str, Dict[str, object]]] = {}
        self.failures: Dict[str, str] = {}

    def _bucket(self, name: str) -> Dict[str, Dict[str, object]]:
        return self._buckets.setdefault(name, {})

    def put_object(
        self,
        Bucket: str,
        Key: str,
        Body,
        ContentType: Optional[str] = None,
    ) -> Dict[str, object]:  # noqa: N803 - mimic boto3 signature
        if isinstance(Body, str):
            payload = Body.encode("utf-8")
        elif hasattr(Body, "read"):
            payload = Body.read()
        else:
            payload = bytes(Body)
        self._bucket(Bucket)[Key] = {
            "Body": payload,
            "ContentLength": len(payload),
            "ContentType": ContentType,
            "LastModified": datetime.now(timezone.utc),
        }
        return {"ResponseMetadata": {"HTTPStatusCode": 200}}

    def get_object(self, Bucket: str, Key: str) -> Dict[str, object]:  # noqa: N803
        if Key in self.failures:
            raise client_error(self.failures[Key], "GetObject")
        bucket = self._bucket(Bucket)
        if Key not in bucket:
            raise client_error("NoSuchKey", "GetObject")
        metadata = bucket[Key]
        return {
            "Body": io.BytesIO(metadata["Body"]),
            "ContentLength": metadata["ContentLength"],
            "ContentType": metadata.get("ContentType"),
            "LastModified": metadata["LastModified"],
        }


def _as_dynamo(value):
    # boto3 hands numbers back as Decimal
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    return value


class FakeDynamoTable:
    """Minimal DynamoDB table supporting put/get/update operations."""

    def __init__(self) -> None:
        self._items: Dict[tuple[str, str], Dict[str, object]] = {}
        self.updates: list[Dict[str, object]] = []

    def put_item(self, Item: Dict[str, object]) -> Dict[str, object]:  # noqa: N803
        key = (Item["pk"], Item["sk"])
        self._items[key] = {name: _as_dynamo(value) for name, value in Item.items()}
        return {"ResponseMetadata": {"HTTPStatusCode": 200}}

    def get_item(self, Key: Dict[str, str]) -> Dict[str, object]:  # noqa: N803
        key = (Key["pk"], Key["sk"])
        item = self._items.get(key)
        return {"Item": dict(item)} if item else {}

    def update_item(
        self,
        Key: Dict[str, str],
        UpdateExpression: str,
        ExpressionAttributeNames: Dict[str, str],
        ExpressionAttributeValues: Dict[str, object],
    ) -> Dict[str, object]:  # noqa: N803
        key = (Key["pk"], Key["sk"])
        if key not in self._items:
            raise client_error("ResourceNotFoundException", "UpdateItem")
        item = dict(self._items[key])
        expression = UpdateExpression.replace("SET", "", 1).strip()
        changed: Dict[str, object] = {}
        for part in expression.split(","):
            name_alias, value_alias = [segment.strip() for segment in part.split("=", 1)]
            attribute_name = ExpressionAttributeNames.get(name_alias, name_alias)
            changed[attribute_name] = _as_dynamo(ExpressionAttributeValues[value_alias])
        item.update(changed)
        self._items[key] = item
        self.updates.append(changed)
        return {"Attributes": dict(item)}


class FakeDynamoResource:
    def __init__(self, table: FakeDynamoTable) -> None:
        self._table = table

    def Table(self, _name: str) -> FakeDynamoTable:  # noqa: N802 - mimic boto3
        return self._table
