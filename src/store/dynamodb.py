"""DynamoDB-backed document store.

Each logical collection maps to one table (optionally prefixed) whose
partition key is ``id``. Batches are committed with TransactWriteItems,
which is all-or-nothing and capped at ``TRANSACT_WRITE_LIMIT`` items.
"""

import logging
import os
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

import boto3
from boto3.dynamodb.types import TypeDeserializer, TypeSerializer
from botocore.exceptions import BotoCoreError, ClientError

from src.store.base import DocumentStore, SourceDocument, StoreError, WriteBatch

logger = logging.getLogger(__name__)

TRANSACT_WRITE_LIMIT = 100

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()


def to_dynamo_value(value: Any) -> Any:
    """Convert a Python value into something ``TypeSerializer`` accepts.

    Datetimes become ISO-8601 strings and floats become Decimals.
    """
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {str(k): to_dynamo_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_dynamo_value(v) for v in value]
    return value


def from_dynamo_value(value: Any) -> Any:
    """Convert deserialized DynamoDB values back to plain Python types."""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: from_dynamo_value(v) for k, v in value.items()}
    if isinstance(value, (list, set)):
        return [from_dynamo_value(v) for v in value]
    return value


def serialize_item(fields: dict) -> dict:
    """Serialize a document into DynamoDB attribute-value format."""
    plain = to_dynamo_value(fields)
    return {k: _serializer.serialize(v) for k, v in plain.items()}


def deserialize_item(item: dict) -> dict:
    """Deserialize a DynamoDB item into a plain dict."""
    return {k: from_dynamo_value(_deserializer.deserialize(v)) for k, v in item.items()}


class DynamoDBBatch(WriteBatch):
    """Write batch committed as a single DynamoDB transaction."""

    def __init__(self, store: "DynamoDBStore"):
        self._store = store
        self._items: list[dict] = []

    def set(self, collection: str, document_id: str, fields: dict) -> None:
        item = serialize_item({**fields, "id": document_id})
        self._items.append(
            {"Put": {"TableName": self._store.table_name(collection), "Item": item}}
        )

    def commit(self) -> None:
        if not self._items:
            return
        if len(self._items) > TRANSACT_WRITE_LIMIT:
            raise StoreError(
                f"Transaction of {len(self._items)} items exceeds the "
                f"{TRANSACT_WRITE_LIMIT} item limit"
            )

        try:
            self._store.client.transact_write_items(TransactItems=self._items)
        except (ClientError, BotoCoreError) as e:
            logger.error(
                f"Failed to commit transaction: {e}",
                extra={"item_count": len(self._items)},
            )
            raise StoreError(str(e)) from e

        logger.debug(
            f"Committed transaction of {len(self._items)} items",
            extra={"item_count": len(self._items)},
        )
        self._items = []

    def __len__(self) -> int:
        return len(self._items)


class DynamoDBStore(DocumentStore):
    """Document store over DynamoDB tables."""

    def __init__(
        self,
        region_name: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        table_prefix: Optional[str] = None,
        client: Any = None,
    ):
        """Initialize the store.

        Args:
            region_name: AWS region (or from env: AWS_REGION)
            endpoint_url: Custom endpoint, e.g. DynamoDB Local (or from env:
                DYNAMODB_ENDPOINT_URL)
            table_prefix: Prefix prepended to every collection name (or from
                env: DYNAMODB_TABLE_PREFIX)
            client: Pre-built boto3 DynamoDB client, mainly for tests
        """
        self.table_prefix = (
            table_prefix if table_prefix is not None
            else os.getenv("DYNAMODB_TABLE_PREFIX", "")
        )
        self.client = client or boto3.client(
            "dynamodb",
            region_name=region_name or os.getenv("AWS_REGION", "us-east-1"),
            endpoint_url=endpoint_url or os.getenv("DYNAMODB_ENDPOINT_URL") or None,
        )

    def table_name(self, collection: str) -> str:
        return f"{self.table_prefix}{collection}"

    def fetch_all(self, collection: str) -> list[SourceDocument]:
        """Scan a whole table into memory.

        Args:
            collection: Logical collection name

        Returns:
            One SourceDocument per item; the ``id`` attribute becomes the
            document id and is removed from the data

        Raises:
            StoreError: If the scan fails
        """
        table = self.table_name(collection)
        documents = []

        try:
            paginator = self.client.get_paginator("scan")
            for page in paginator.paginate(TableName=table, ConsistentRead=True):
                for item in page.get("Items", []):
                    data = deserialize_item(item)
                    document_id = str(data.pop("id"))
                    documents.append(SourceDocument(id=document_id, data=data))
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error scanning table {table}: {e}")
            raise StoreError(str(e)) from e

        logger.info(
            f"Scanned {len(documents)} items from {table}",
            extra={"table": table, "record_count": len(documents)},
        )
        return documents

    def new_batch(self) -> DynamoDBBatch:
        return DynamoDBBatch(self)

    def new_document_id(self, collection: str) -> str:
        return uuid.uuid4().hex
