"""Document store adapters.

Includes:
- The abstract store and batch interface
- DynamoDB store (TransactWriteItems batches)
- Local JSONL store for dry runs
"""

from .base import DocumentStore, SourceDocument, StoreError, WriteBatch
from .dynamodb import DynamoDBStore, TRANSACT_WRITE_LIMIT
from .jsonl import JsonlStore

__all__ = [
    "DocumentStore",
    "SourceDocument",
    "StoreError",
    "WriteBatch",
    "DynamoDBStore",
    "TRANSACT_WRITE_LIMIT",
    "JsonlStore",
]
