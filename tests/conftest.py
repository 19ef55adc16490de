"""Pytest configuration and fixtures."""

import copy
import itertools
from collections import defaultdict
from datetime import datetime, timezone
from typing import Optional

import pytest

from src.store.base import DocumentStore, SourceDocument, StoreError, WriteBatch


class FakeBatch(WriteBatch):
    """Batch that applies its writes to a FakeStore on commit."""

    def __init__(self, store: "FakeStore"):
        self.store = store
        self.writes: list[tuple[str, str, dict]] = []

    def set(self, collection: str, document_id: str, fields: dict) -> None:
        self.writes.append((collection, document_id, copy.deepcopy(fields)))

    def commit(self) -> None:
        self.store.commit_attempts += 1
        if self.store.fail_on_commit == self.store.commit_attempts:
            raise StoreError("simulated quota exceeded")
        for collection, document_id, fields in self.writes:
            self.store.collections[collection][document_id] = fields
        self.store.commits.append(list(self.writes))

    def __len__(self) -> int:
        return len(self.writes)


class FakeStore(DocumentStore):
    """In-memory document store recording every committed group."""

    def __init__(self, source: Optional[dict[str, dict]] = None, fail_on_commit: Optional[int] = None):
        self.source = source or {}
        self.collections: dict[str, dict[str, dict]] = defaultdict(dict)
        self.commits: list[list[tuple[str, str, dict]]] = []
        self.commit_attempts = 0
        self.fail_on_commit = fail_on_commit
        self._counters: dict[str, itertools.count] = defaultdict(lambda: itertools.count(1))

    def fetch_all(self, collection: str) -> list[SourceDocument]:
        return [
            SourceDocument(id=doc_id, data=copy.deepcopy(data))
            for doc_id, data in self.source.items()
        ]

    def new_batch(self) -> FakeBatch:
        return FakeBatch(self)

    def new_document_id(self, collection: str) -> str:
        return f"{collection}-{next(self._counters[collection])}"


@pytest.fixture
def fixed_now():
    """Fixed datetime for testing."""
    return datetime(2024, 1, 15, 10, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(fixed_now):
    return lambda: fixed_now


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def flat_visit():
    """Legacy visit in the flat layout with inward and extra trips."""
    return {
        "ship": "  MV Example ",
        "gt": 5000,
        "marineTraffic": "https://www.marinetraffic.com/en/ais/details/ships/imo:9100126/",
        "shipNote": "Bow thruster weak",
        "status": "Alongside",
        "eta": "2021-03-01T08:00:00Z",
        "berth": "Quay 3",
        "note": "Late arrival",
        "inward": {
            "boarding": "2021-03-01T09:15:00Z",
            "pilot": "Jane Doe",
            "port": "Quay 3",
            "preTripNote": "Tug on standby",
            "confirmed": False,
        },
        "inwardConfirmed": True,
        "extra": [
            {"boarding": "2021-03-02T10:00:00Z", "typeTrip": "Shift", "port": "Quay 5"},
            {"boarding": "2022-01-05T07:00:00Z", "typeTrip": "Shift", "confirmed": True},
        ],
    }


@pytest.fixture
def nested_visit():
    """Legacy visit keeping its ship fields under shipInfo."""
    return {
        "shipInfo": {
            "ship": "Northern Star",
            "gt": 12000,
            "imo": "9300001",
            "marineTrafficLink": "https://www.marinetraffic.com/en/ais/details/ships/imo:9300001/",
            "shipnote": "Gangway port side",
        },
        # Ignored because shipInfo is present
        "ship": "Wrong Name",
        "eta": datetime(2022, 6, 1, 12, 0, tzinfo=timezone.utc),
        "inward": {"boarding": {"_seconds": 1654084800, "_nanoseconds": 0}},
        "outward": {"boarding": 1654257600000, "fromPort": "Quay 1"},
        "outwardConfirmed": True,
    }
